"""Blackjack Rules Engine — Streamlit Dashboard.

Four-tab interactive dashboard:
  Tab 1 — Strategy Heat Maps     (matplotlib, hard / soft / pair tables)
  Tab 2 — Interactive Lookup     (Plotly, hover for the action under the sidebar rules)
  Tab 3 — Dealer Outcomes        (infinite-deck dealer-only Monte Carlo)
  Tab 4 — Earnings & Bankroll    (full-round Monte Carlo, risk of ruin, projections)

Run:
    streamlit run app.py
"""

from __future__ import annotations

import contextlib
import io

import matplotlib

matplotlib.use("Agg")  # must be set before any other matplotlib imports

import pandas as pd
import streamlit as st

from blackjack.engine.ruleset import DoubleDownOn, MaxHandsAfterSplit, SplitAces, create_ruleset
from blackjack.engine.serialization import ruleset_from_dict, ruleset_to_dict

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Blackjack Rules Engine",
    page_icon="🃏",
    layout="wide",
)

# ─── Cached computations ──────────────────────────────────────────────────────


@st.cache_resource
def _load_analysis_modules():
    """Import heavy analysis modules once (cached for the process lifetime)."""
    from blackjack.analysis import bankroll, heat_maps, plotly_lookup, simulator, strategy_report

    return {
        "bankroll": bankroll,
        "heat_maps": heat_maps,
        "plotly_lookup": plotly_lookup,
        "simulator": simulator,
        "strategy_report": strategy_report,
    }


@st.cache_data
def _dealer_outcomes(iterations: int, seed: int) -> dict[int, dict[int, int]]:
    from blackjack.analysis.simulator import simulate_all_upcards

    return simulate_all_upcards(iterations, seed=seed)


@st.cache_data
def _simulate(rules_data: dict, n_rounds: int, strategy: str, seed: int):
    """Run the full-round simulation; keyed on the plain-data ruleset."""
    from blackjack.analysis.simulator import simulate_rounds

    return simulate_rounds(
        ruleset_from_dict(rules_data),
        n_rounds,
        strategy=strategy,
        seed=seed,
        return_payouts=True,
    )


# ─── Sidebar controls ─────────────────────────────────────────────────────────

with st.sidebar:
    st.title("🃏 Blackjack")
    st.markdown("---")
    st.subheader("Table rules")

    surrender = st.checkbox("Late surrender", value=True)
    stands_all_17 = st.checkbox("Dealer stands on soft 17", value=True)
    dealer_peeks = st.checkbox("Dealer peeks for blackjack", value=True)
    split_aces = st.selectbox(
        "Ace splits",
        options=list(SplitAces),
        index=list(SplitAces).index(SplitAces.TWICE),
        format_func=lambda m: m.name.replace("_", " ").title(),
    )
    hit_on_split_ace = st.checkbox("Hit split aces", value=False)
    max_hands = st.selectbox(
        "Max hands after split",
        options=list(MaxHandsAfterSplit),
        index=list(MaxHandsAfterSplit).index(MaxHandsAfterSplit.THREE),
        format_func=lambda m: str(m.value),
    )
    double_down_on = st.selectbox(
        "Double down on",
        options=list(DoubleDownOn),
        format_func=lambda m: m.value,
    )
    double_after_split = st.checkbox("Double after split", value=True)
    double_on_split_ace = st.checkbox("Double on split aces", value=False, key="double_on_split_ace")
    blackjack_payout = st.selectbox(
        "Blackjack pays",
        options=[1.5, 1.2, 1.0],
        format_func=lambda v: {1.5: "3:2", 1.2: "6:5", 1.0: "1:1"}[v],
    )
    ace_and_ten = st.checkbox("Ace + ten-card is blackjack", value=True, key="ace_and_ten")
    split_ace_blackjack = st.checkbox("Split ace + ten is blackjack", value=False, key="split_ace_blackjack")
    num_decks = st.slider("Decks", min_value=1, max_value=8, value=8)

    st.markdown("---")
    strategy = st.selectbox("Simulated player", options=["optimal", "random"], key="strategy")
    n_rounds = st.slider("MC rounds", min_value=2_000, max_value=100_000, value=10_000, step=2_000)
    n_dealer = st.slider("Dealer hands per upcard", min_value=5_000, max_value=200_000, value=20_000, step=5_000)
    seed = st.number_input("Seed", min_value=0, value=42, step=1)

    st.markdown("---")
    st.caption("Engine → Advisor → Monte Carlo → Analysis")

rules = create_ruleset(
    surrender=surrender,
    dealer_stands_on_all_17=stands_all_17,
    dealer_peeks=dealer_peeks,
    split_aces=split_aces,
    hit_on_split_ace=hit_on_split_ace,
    max_hands_after_split=max_hands,
    double_down_on=double_down_on,
    double_after_split=double_after_split,
    double_on_split_ace=double_on_split_ace,
    blackjack_payout=blackjack_payout,
    ace_and_ten_counts_as_blackjack=ace_and_ten,
    split_ace_can_be_blackjack=split_ace_blackjack,
    num_decks=num_decks,
)

# ─── Tabs ─────────────────────────────────────────────────────────────────────

tab1, tab2, tab3, tab4 = st.tabs(
    [
        "Strategy Heat Maps",
        "Interactive Lookup",
        "Dealer Outcomes",
        "Earnings & Bankroll",
    ]
)

m = _load_analysis_modules()

# ── Tab 1: Strategy Heat Maps ─────────────────────────────────────────────────

with tab1:
    st.header("Basic Strategy Heat Maps")
    st.caption("Rows = player hand | Cols = dealer upcard | Cells = strategy code")
    st.pyplot(m["heat_maps"].plot_strategy_heatmaps(show=False))

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        m["strategy_report"].format_strategy_chart()
    with st.expander("Text chart"):
        st.code(buf.getvalue(), language=None)

# ── Tab 2: Interactive Lookup ─────────────────────────────────────────────────

with tab2:
    st.header("Interactive Strategy Lookup")
    st.caption("Hover over any cell to see the code and the action it resolves to under the sidebar rules.")
    st.plotly_chart(m["plotly_lookup"].build_strategy_lookup_figure(rules), use_container_width=True)

# ── Tab 3: Dealer Outcomes ────────────────────────────────────────────────────

with tab3:
    st.header("Dealer Outcomes")
    st.caption("Infinite-deck dealer-only simulation; the dealer draws to 17 and stands on soft 17.")

    with st.spinner(f"Simulating {n_dealer:,} dealer hands per upcard …"):
        histograms = _dealer_outcomes(n_dealer, int(seed))

    st.pyplot(m["heat_maps"].plot_dealer_outcomes(histograms, show=False))

    matrix = m["heat_maps"].build_dealer_outcome_matrix(histograms) * 100.0
    outcome_df = pd.DataFrame(
        matrix,
        columns=m["heat_maps"].OUTCOME_LABELS,
        index=["A" if u == 1 else str(u) for u in m["heat_maps"].DEALER_UPCARDS],
    ).round(2)
    st.dataframe(outcome_df, use_container_width=True)

# ── Tab 4: Earnings & Bankroll ────────────────────────────────────────────────

with tab4:
    st.header("Earnings Distribution & Bankroll")
    st.caption("Full rounds through the engine, reshuffled every round, flat 1-unit bet.")

    with st.spinner(f"Simulating {n_rounds:,} rounds …"):
        sim = _simulate(ruleset_to_dict(rules), n_rounds, strategy, int(seed))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Mean EV / round", f"{sim.mean_ev:+.4f}")
    col2.metric("House edge", f"{sim.house_edge_pct:+.2f}%")
    col3.metric("Std dev", f"{sim.std_ev:.4f}")
    col4.metric("Win / Loss / Push", f"{sim.n_wins:,} / {sim.n_losses:,} / {sim.n_pushes:,}")

    dist_df = pd.DataFrame(
        {
            "Net": [c / 100 for c in sim.distribution],
            "Share %": [count / sim.n_rounds * 100 for count in sim.distribution.values()],
        }
    )
    st.bar_chart(dist_df, x="Net", y="Share %")

    st.markdown("---")
    st.subheader("Session Risk")
    bk = m["bankroll"]
    vs = bk.compute_variance_stats(sim.payouts)
    st.caption(
        f"Lost {vs.loss_share:.1%} · pushed {vs.push_share:.1%} · won {vs.win_share:.1%} · "
        f"{vs.swing_share:.1%} of rounds decided by a double or split"
    )
    bankrolls = [20, 50, 100, 200]
    long_run = bk.risk_of_ruin(vs, bankrolls)
    sessions = [
        bk.session_ruin_probability(sim.payouts, float(units), session_rounds=1000, n_trajectories=300)
        for units in bankrolls
    ]
    ror_df = pd.DataFrame(
        {
            "Bankroll (units)": bankrolls,
            "Long-run P(ruin)": [f"{r:.4f}" for r in long_run],
            "P(ruin) in 1,000 rounds": [f"{s.ruin_prob * 100:.1f}%" for s in sessions],
        }
    )
    st.dataframe(ror_df, use_container_width=True, hide_index=True)

    requirements = [
        bk.required_bankroll(sim.payouts, r, session_rounds=1000, n_trajectories=300) for r in (0.10, 0.05, 0.01)
    ]
    cols = st.columns(len(requirements))
    for col, req in zip(cols, requirements):
        col.metric(f"Bankroll for {1 - req.max_ruin:.0%} survival", f"{req.bankroll:.0f} units")

    st.markdown("---")
    st.subheader("Horizon Projections (CLT)")
    proj = bk.compute_horizon_projections(vs)
    proj_rows = [
        {
            "Rounds": p.n_rounds,
            "Expected Profit": f"{p.expected_profit:+.2f}",
            "CI Low": f"{p.ci_low:+.2f}",
            "CI High": f"{p.ci_high:+.2f}",
            "P(profit > 0)": f"{p.prob_positive:.3f}",
        }
        for p in proj
    ]
    st.dataframe(pd.DataFrame(proj_rows), use_container_width=True, hide_index=True)

    st.markdown("---")
    st.subheader("Full Variance Report (stdout capture)")
    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        drawdown = bk.compute_drawdown_stats(sim.payouts, n_trajectories=200, trajectory_length=500)
        bk.format_variance_report(
            vs,
            proj,
            drawdown,
            requirements=requirements,
            sessions=sessions,
            label=f"{strategy} strategy",
        )
        m["strategy_report"].format_distribution(sim.distribution, sim.n_rounds)
    st.code(buf.getvalue(), language=None)

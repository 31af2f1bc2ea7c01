"""Variance and bankroll analysis for blackjack round results.

Provides:
- Distribution statistics and the round outcome mix (losses, pushes, wins,
  and the doubled / split rounds that swing more than a blackjack)
- Long-run risk of ruin (gambler's ruin approximation)
- Horizon projections via CLT (expected profit + confidence intervals)
- Bootstrap session analysis: max drawdown, session ruin, and the bankroll
  a session needs to survive at a chosen ruin probability

Basic strategy under common rules has a negative edge, so long-run ruin is
certain and the closed-form bankroll formula has no answer. Everything about
bankroll sizing is therefore asked of finite sessions, resampled from
simulated round nets.

Usage (standalone report):
    python -m blackjack.analysis.bankroll 20000
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy import stats

# Largest single-round swing without a double or split: a 3:2 blackjack.
_PLAIN_SWING: float = 1.5

DEFAULT_HORIZONS: tuple[int, ...] = (100, 500, 1000, 5000, 10_000)
_PERCENTILES: tuple[int, ...] = (1, 5, 25, 50, 75, 95, 99)

# ─── Dataclasses ──────────────────────────────────────────────────────────────


@dataclass
class VarianceStats:
    """Descriptive statistics for per-round net results (units of the flat bet).

    Attributes:
        mean:        Mean net per round; negative is the house edge.
        std:         Sample standard deviation.
        variance:    Sample variance.
        skewness:    Fisher skewness.
        kurtosis:    Excess kurtosis (normal = 0).
        percentiles: Keys 'p1', 'p5', 'p25', 'p50', 'p75', 'p95', 'p99'.
        n_rounds:    Rounds in the sample.
        loss_share:  Fraction of rounds with a negative net.
        push_share:  Fraction of rounds netting exactly zero.
        win_share:   Fraction of rounds with a positive net.
        swing_share: Fraction of rounds whose net exceeds 1.5 units either
                     way, i.e. rounds decided by a double or a split.
    """

    mean: float
    std: float
    variance: float
    skewness: float
    kurtosis: float
    percentiles: dict[str, float]
    n_rounds: int
    loss_share: float
    push_share: float
    win_share: float
    swing_share: float


@dataclass
class HorizonProjection:
    n_rounds: int
    expected_profit: float
    ci_low: float
    ci_high: float
    prob_positive: float


@dataclass
class DrawdownStats:
    """Max drawdown distribution from bootstrapped sessions (units)."""

    mean_max_drawdown: float
    median_max_drawdown: float
    p95_max_drawdown: float
    n_trajectories: int


@dataclass
class SessionRisk:
    """Bootstrap estimate of losing a whole bankroll within one session."""

    bankroll: float
    session_rounds: int
    ruin_prob: float
    n_trajectories: int


@dataclass
class BankrollRequirement:
    """Smallest bankroll that survives a session with probability 1 - max_ruin.

    Attributes:
        max_ruin:       Accepted probability of going broke in the session.
        session_rounds: Rounds per session.
        bankroll:       Units needed; the (1 - max_ruin) quantile of the
                        deepest loss reached in a session.
        n_trajectories: Bootstrap sessions used.
    """

    max_ruin: float
    session_rounds: int
    bankroll: float
    n_trajectories: int


# ─── Distribution ─────────────────────────────────────────────────────────────


def compute_variance_stats(payouts: np.ndarray) -> VarianceStats:
    """Summarise per-round nets, including how the rounds were decided.

    Args:
        payouts: 1-D array of per-round nets in bet units.
    """
    payouts = np.asarray(payouts, dtype=np.float64)
    desc = stats.describe(payouts)
    pct = np.percentile(payouts, _PERCENTILES)
    n = desc.nobs
    return VarianceStats(
        mean=float(desc.mean),
        std=math.sqrt(desc.variance),
        variance=float(desc.variance),
        skewness=float(desc.skewness),
        kurtosis=float(desc.kurtosis),
        percentiles={f"p{q}": float(v) for q, v in zip(_PERCENTILES, pct)},
        n_rounds=n,
        loss_share=float(np.count_nonzero(payouts < 0) / n),
        push_share=float(np.count_nonzero(payouts == 0) / n),
        win_share=float(np.count_nonzero(payouts > 0) / n),
        swing_share=float(np.count_nonzero(np.abs(payouts) > _PLAIN_SWING) / n),
    )


# ─── Closed-form projections ──────────────────────────────────────────────────


def risk_of_ruin(variance: VarianceStats, bankroll: float | np.ndarray) -> float | np.ndarray:
    """Long-run probability of ruin, exp(-2 * edge * bankroll / variance).

    Accepts a scalar bankroll or an array of them. Ruin is certain when the
    edge is not positive, which is the usual case for a blackjack player.
    """
    bankroll = np.asarray(bankroll, dtype=np.float64)
    if variance.mean <= 0 or variance.variance == 0:
        ruin = np.where(variance.mean <= 0, np.ones_like(bankroll), np.zeros_like(bankroll))
    else:
        ruin = np.exp(-2.0 * variance.mean * bankroll / variance.variance)
    return float(ruin) if ruin.ndim == 0 else ruin


def compute_horizon_projections(
    variance: VarianceStats,
    horizons: tuple[int, ...] | list[int] = DEFAULT_HORIZONS,
    confidence: float = 0.95,
) -> list[HorizonProjection]:
    """CLT projection of cumulative profit: Normal(N * mean, N * variance)."""
    n = np.asarray(horizons, dtype=np.float64)
    z = stats.norm.ppf(0.5 + confidence / 2.0)
    expected = n * variance.mean
    margin = z * variance.std * np.sqrt(n)
    if variance.std > 0:
        prob = stats.norm.sf(-np.sqrt(n) * variance.mean / variance.std)
    else:
        prob = np.full(n.shape, 1.0 if variance.mean > 0 else 0.0)
    return [
        HorizonProjection(
            n_rounds=int(h),
            expected_profit=float(e),
            ci_low=float(e - m),
            ci_high=float(e + m),
            prob_positive=float(p),
        )
        for h, e, m, p in zip(horizons, expected, margin, prob)
    ]


# ─── Bootstrap sessions ───────────────────────────────────────────────────────


def _session_paths(payouts: np.ndarray, n_trajectories: int, session_rounds: int, seed: int) -> np.ndarray:
    """Cumulative nets of resampled sessions, shape (n_trajectories, session_rounds)."""
    rng = np.random.default_rng(seed)
    return np.cumsum(rng.choice(payouts, size=(n_trajectories, session_rounds)), axis=1)


def _deepest_losses(paths: np.ndarray) -> np.ndarray:
    """Largest cumulative loss reached by each session, 0 if never behind."""
    return np.maximum(-paths.min(axis=1), 0.0)


def compute_drawdown_stats(
    payouts: np.ndarray,
    n_trajectories: int = 1000,
    trajectory_length: int = 500,
    seed: int = 0,
) -> DrawdownStats:
    """Max drawdown from the running peak of each resampled session."""
    paths = _session_paths(payouts, n_trajectories, trajectory_length, seed)
    peaks = np.maximum.accumulate(np.maximum(paths, 0.0), axis=1)
    drawdowns = (peaks - paths).max(axis=1)
    return DrawdownStats(
        mean_max_drawdown=float(drawdowns.mean()),
        median_max_drawdown=float(np.median(drawdowns)),
        p95_max_drawdown=float(np.percentile(drawdowns, 95)),
        n_trajectories=n_trajectories,
    )


def session_ruin_probability(
    payouts: np.ndarray,
    bankroll: float,
    session_rounds: int = 1000,
    n_trajectories: int = 1000,
    seed: int = 0,
) -> SessionRisk:
    """Fraction of resampled sessions whose running loss reaches `bankroll`."""
    deepest = _deepest_losses(_session_paths(payouts, n_trajectories, session_rounds, seed))
    return SessionRisk(
        bankroll=bankroll,
        session_rounds=session_rounds,
        ruin_prob=float(np.mean(deepest >= bankroll)),
        n_trajectories=n_trajectories,
    )


def required_bankroll(
    payouts: np.ndarray,
    max_ruin: float = 0.05,
    session_rounds: int = 1000,
    n_trajectories: int = 1000,
    seed: int = 0,
) -> BankrollRequirement:
    """Bankroll covering the deepest session loss in (1 - max_ruin) of sessions.

    Works for any edge, unlike the closed-form gambler's ruin inversion.

    Raises:
        ValueError: If max_ruin is not in (0, 1).
    """
    if not 0.0 < max_ruin < 1.0:
        raise ValueError(f"max_ruin must be in (0, 1), got {max_ruin}")
    deepest = _deepest_losses(_session_paths(payouts, n_trajectories, session_rounds, seed))
    return BankrollRequirement(
        max_ruin=max_ruin,
        session_rounds=session_rounds,
        bankroll=float(np.quantile(deepest, 1.0 - max_ruin, method="higher")),
        n_trajectories=n_trajectories,
    )


# ─── Output functions ─────────────────────────────────────────────────────────


def format_variance_report(
    variance: VarianceStats,
    projections: list[HorizonProjection],
    drawdown: DrawdownStats,
    *,
    requirements: list[BankrollRequirement] | tuple[BankrollRequirement, ...] = (),
    sessions: list[SessionRisk] | tuple[SessionRisk, ...] = (),
    label: str = "",
) -> str:
    """Format and print a variance and bankroll report.

    Returns:
        The formatted report string (also printed to stdout).
    """
    title = "Variance & Bankroll Report" + (f": {label}" if label else "")
    p = variance.percentiles
    lines = [
        "=" * 70,
        title,
        "=" * 70,
        "",
        "── Distribution Statistics ─────────────────────────────────────────",
        f"  Rounds simulated: {variance.n_rounds:>10,}",
        f"  Mean net / round: {variance.mean:>+10.4f} units  (house edge {-variance.mean * 100:+.2f}%)",
        f"  Std deviation   : {variance.std:>10.4f} units",
        f"  Skewness        : {variance.skewness:>10.4f}",
        f"  Excess kurtosis : {variance.kurtosis:>10.4f}",
        "  Percentiles     : " + "  ".join(f"{k}={v:+.1f}" for k, v in p.items()),
        "",
        "── Round Outcomes ──────────────────────────────────────────────────",
        f"  Lost  {variance.loss_share:>6.1%}   Pushed {variance.push_share:>6.1%}   Won {variance.win_share:>6.1%}",
        f"  Decided by a double or split (|net| > 1.5): {variance.swing_share:.1%}",
        "",
        "── Horizon Projections (CLT, 95% CI) ───────────────────────────────",
        f"  {'Rounds':>8}  {'E[profit]':>10}  {'CI low':>10}  {'CI high':>10}  {'P(+)':>6}",
    ]
    lines += [
        f"  {proj.n_rounds:>8,}  {proj.expected_profit:>+10.2f}  "
        f"{proj.ci_low:>+10.2f}  {proj.ci_high:>+10.2f}  {proj.prob_positive:>5.1%}"
        for proj in projections
    ]
    lines += [
        "",
        "── Drawdown (bootstrap) ────────────────────────────────────────────",
        f"  Max drawdown over {drawdown.n_trajectories:,} sessions: "
        f"mean {drawdown.mean_max_drawdown:.1f}, median {drawdown.median_max_drawdown:.1f}, "
        f"p95 {drawdown.p95_max_drawdown:.1f} units",
    ]
    if requirements:
        lines += ["", "── Session Bankroll (bootstrap) ────────────────────────────────────"]
        lines += [
            f"  Survive {1 - req.max_ruin:.0%} of {req.session_rounds:,}-round sessions: "
            f"{req.bankroll:>7.1f} units"
            for req in requirements
        ]
    if sessions:
        lines += ["", "── Session Risk (bootstrap) ────────────────────────────────────────"]
        lines += [
            f"  {s.bankroll:>7,.0f} units over {s.session_rounds:,} rounds: P(ruin) {s.ruin_prob:.1%}"
            for s in sessions
        ]
    lines.append("")
    report = "\n".join(lines)
    print(report)
    return report


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    from blackjack.analysis.simulator import simulate_rounds
    from blackjack.engine.ruleset import TABLE_RULES

    n_rounds = int(sys.argv[1]) if len(sys.argv) > 1 else 10_000
    result = simulate_rounds(TABLE_RULES, n_rounds, seed=42, return_payouts=True)
    payouts = result.payouts

    vs = compute_variance_stats(payouts)
    format_variance_report(
        vs,
        compute_horizon_projections(vs),
        compute_drawdown_stats(payouts, n_trajectories=500),
        requirements=[required_bankroll(payouts, r) for r in (0.10, 0.05, 0.01)],
        sessions=[session_ruin_probability(payouts, b) for b in (25.0, 50.0, 100.0)],
        label="basic strategy",
    )

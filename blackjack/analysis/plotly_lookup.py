"""Interactive Plotly basic-strategy lookup.

Public functions:

    build_strategy_lookup_figure(rules)
        Interactive hard / soft / pair heatmaps. Hovering a cell shows the
        hand, the dealer upcard, the table code, and the concrete action that
        code resolves to on a first decision under `rules`.
    first_decision_action(kind, key, upcard_index, rules)
        The resolved action for one cell, usable without a figure.
    save_lookup_html(fig, path)
        Export any figure to a self-contained HTML file.

Figures open in a browser via ``fig.show()`` or embed in Streamlit.
"""

from __future__ import annotations

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from blackjack.analysis.heat_maps import CODE_COLORS, CODE_ORDER, build_strategy_matrix, table_row_labels
from blackjack.engine.cards import Card
from blackjack.engine.game_state import GameState, Phase, PlayerAction, allowed_actions
from blackjack.engine.ruleset import Ruleset
from blackjack.solvers.basic_strategy import (
    HARD_TABLE,
    PAIR_TABLE,
    SOFT_TABLE,
    STRATEGY_LABELS,
    UPCARD_LABELS,
    resolve,
)

# ─── Constants ────────────────────────────────────────────────────────────────

TABLES: dict[str, dict] = {"hard": HARD_TABLE, "soft": SOFT_TABLE, "pair": PAIR_TABLE}
_PANEL_TITLES: list[str] = ["Hard totals", "Soft totals", "Pairs"]

_ACTION_LABELS: dict[PlayerAction, str] = {
    PlayerAction.HIT: "HIT",
    PlayerAction.STAND: "STAND",
    PlayerAction.DOUBLE_DOWN: "DOUBLE",
    PlayerAction.SPLIT: "SPLIT",
    PlayerAction.SURRENDER: "SURRENDER",
}


def _discrete_colorscale() -> list[list]:
    """Step colorscale with one flat band per code in CODE_ORDER."""
    n = len(CODE_ORDER)
    scale: list[list] = []
    for i, code in enumerate(CODE_ORDER):
        scale.append([i / n, CODE_COLORS[code]])
        scale.append([(i + 1) / n, CODE_COLORS[code]])
    return scale


_CODE_COLORSCALE: list[list] = _discrete_colorscale()


# ─── First-decision resolution ────────────────────────────────────────────────


def first_decision_cards(kind: str, key: int) -> tuple[str, str]:
    """Two player cards that land on one table row.

    Examples:
        >>> first_decision_cards('hard', 16)
        ('6H', '10S')
        >>> first_decision_cards('soft', 12)
        ('AH', 'AS')
        >>> first_decision_cards('pair', 11)
        ('AH', 'AS')
    """
    if kind == "pair":
        rank = "A" if key == 11 else str(key)
        ranks = (rank, rank)
    elif kind == "soft":
        ranks = ("A", "A" if key == 12 else str(key - 11))
    elif key <= 11:
        ranks = ("2", str(key - 2))
    elif key < 20:
        ranks = (str(key - 10), "10")
    else:
        ranks = ("10", "K")
    return ranks[0] + "H", ranks[1] + "S"


def _first_decision_state(kind: str, key: int, upcard_index: int, rules: Ruleset) -> GameState:
    """Unsplit two-card PLAYER_TURN state with the hole card still concealed."""
    first, second = first_decision_cards(kind, key)
    return GameState(
        starting_bet=1.0,
        shoe=np.empty(0, dtype=np.int8),
        dealer_hand=[Card.from_str(UPCARD_LABELS[upcard_index] + "C"), Card.from_str("2D", face_down=True)],
        player_hands=[[Card.from_str(first), Card.from_str(second)]],
        hand_index=0,
        bets=[1.0],
        rules=rules,
        phase=Phase.PLAYER_TURN,
    )


def first_decision_action(kind: str, key: int, upcard_index: int, rules: Ruleset) -> PlayerAction:
    """Resolve one table cell to a concrete action on a first decision.

    Args:
        kind:         'hard', 'soft' or 'pair'.
        key:          Row key of that table (total, or pair card value with Ace = 11).
        upcard_index: Column index, 0 = upcard 2 … 9 = Ace.
        rules:        Ruleset deciding which fallbacks apply.

    Examples:
        >>> first_decision_action('hard', 11, 0, Ruleset()).name
        'DOUBLE_DOWN'
        >>> first_decision_action('hard', 16, 8, Ruleset()).name   # no surrender
        'HIT'
    """
    code = TABLES[kind][key][upcard_index]
    allowed = allowed_actions(_first_decision_state(kind, key, upcard_index, rules))
    return resolve(code, allowed, rules)


# ─── Hover text builder ───────────────────────────────────────────────────────


def _build_hover(kind: str, rules: Ruleset) -> list[list[str]]:
    table = TABLES[kind]
    labels = table_row_labels(table)
    rows: list[list[str]] = []
    for key, label in zip(sorted(table), labels):
        row: list[str] = []
        for c, upcard in enumerate(UPCARD_LABELS):
            code = table[key][c]
            action = first_decision_action(kind, key, c, rules)
            lines = [
                f"Hand: <b>{label}</b> ({kind})",
                f"Dealer: {upcard}",
                f"Code: {code.value} ({STRATEGY_LABELS[code]})",
                f"Action: <b>{_ACTION_LABELS[action]}</b>",
            ]
            row.append("<br>".join(lines))
        rows.append(row)
    return rows


# ─── Trace builder ─────────────────────────────────────────────────────────────


def _make_heatmap_trace(kind: str, rules: Ruleset, *, showscale: bool) -> go.Heatmap:
    table = TABLES[kind]
    data = build_strategy_matrix(table)
    return go.Heatmap(
        z=data.tolist(),
        x=UPCARD_LABELS,
        y=table_row_labels(table),
        colorscale=_CODE_COLORSCALE,
        zmin=-0.5,
        zmax=len(CODE_ORDER) - 0.5,
        text=[[code.value for code in table[key]] for key in sorted(table)],
        texttemplate="%{text}",
        customdata=_build_hover(kind, rules),
        hovertemplate="%{customdata}<extra></extra>",
        showscale=showscale,
        colorbar={
            "title": "Code",
            "tickvals": list(range(len(CODE_ORDER))),
            "ticktext": [code.value for code in CODE_ORDER],
        },
        name=kind,
    )


# ─── Public figure builders ───────────────────────────────────────────────────


def build_strategy_lookup_figure(rules: Ruleset | None = None) -> go.Figure:
    """Build the interactive 1×3 lookup (hard, soft, pairs).

    Args:
        rules: Ruleset used to resolve codes in the hover text. Defaults to
               `Ruleset()`.

    Returns:
        go.Figure with three heatmap traces.
    """
    if rules is None:
        rules = Ruleset()

    fig = make_subplots(rows=1, cols=3, subplot_titles=_PANEL_TITLES, horizontal_spacing=0.07)
    for col, kind in enumerate(TABLES, start=1):
        fig.add_trace(_make_heatmap_trace(kind, rules, showscale=(col == 3)), row=1, col=col)

    fig.update_layout(
        title_text="Basic Strategy Lookup",
        title_font_size=15,
        height=560,
        width=1150,
    )
    fig.update_yaxes(autorange="reversed")
    fig.update_xaxes(title_text="Dealer upcard")
    return fig


# ─── HTML export ───────────────────────────────────────────────────────────────


def save_lookup_html(fig: go.Figure, path: str) -> None:
    """Save a Plotly figure to a self-contained HTML file.

    Plotly JS is loaded from the CDN so the file itself remains compact.
    """
    fig.write_html(path, include_plotlyjs="cdn")


# ─── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from blackjack.engine.ruleset import TABLE_RULES

    save_lookup_html(build_strategy_lookup_figure(TABLE_RULES), "strategy_lookup.html")
    print("Saved: strategy_lookup.html")

"""
Basic-strategy advisor.

Three static lookup tables map (player total or pair rank, dealer upcard) to
a coded recommendation:

    HARD_TABLE  hard totals 5–20 (5–8 share one row)
    SOFT_TABLE  soft totals 12–20
    PAIR_TABLE  pair ranks 2–10, A (11); consulted only when SPLIT is legal

Columns are the dealer upcard 2, 3, …, 10, A. Codes are resolved against the
actions actually legal for the hand, so the advisor never recommends an
illegal move.
"""

from __future__ import annotations

from enum import Enum

from blackjack.engine.cards import Card
from blackjack.engine.errors import InvalidPhaseError
from blackjack.engine.game_state import (
    GameState,
    Phase,
    PlayerAction,
    active_hand,
    active_hand_value,
    allowed_actions,
    dealer_upcard,
)
from blackjack.engine.ruleset import Ruleset


class Strategy(Enum):
    HIT = "H"
    STAND = "S"
    DOUBLE_OR_HIT = "D"
    SPLIT = "P"
    DOUBLE_OR_STAND = "DS"
    SPLIT_IF_DAS_OR_HIT = "PH"
    SURRENDER_OR_HIT = "RH"


STRATEGY_LABELS: dict[Strategy, str] = {
    Strategy.HIT: "Hit",
    Strategy.STAND: "Stand",
    Strategy.DOUBLE_OR_HIT: "Double if allowed, otherwise hit",
    Strategy.SPLIT: "Split",
    Strategy.DOUBLE_OR_STAND: "Double if allowed, otherwise stand",
    Strategy.SPLIT_IF_DAS_OR_HIT: "Split if double after split is allowed, otherwise hit",
    Strategy.SURRENDER_OR_HIT: "Surrender if allowed, otherwise hit",
}

UPCARD_LABELS: list[str] = ['2', '3', '4', '5', '6', '7', '8', '9', '10', 'A']

# ─── Tables ───────────────────────────────────────────────────────────────────

H = Strategy.HIT
S = Strategy.STAND
D = Strategy.DOUBLE_OR_HIT
P = Strategy.SPLIT
DS = Strategy.DOUBLE_OR_STAND
PH = Strategy.SPLIT_IF_DAS_OR_HIT
RH = Strategy.SURRENDER_OR_HIT

_ALL_HIT = (H,) * 10
_ALL_STAND = (S,) * 10

HARD_TABLE: dict[int, tuple[Strategy, ...]] = {
    **{total: _ALL_HIT for total in range(5, 9)},
    9: (H, D, D, D, D, H, H, H, H, H),
    10: (D, D, D, D, D, D, D, D, H, H),
    11: (D,) * 10,
    12: (H, H, S, S, S, H, H, H, H, H),
    13: (S, S, S, S, S, H, H, H, H, H),
    14: (S, S, S, S, S, H, H, H, H, H),
    15: (S, S, S, S, S, H, H, H, RH, H),
    16: (S, S, S, S, S, H, H, RH, RH, RH),
    **{total: _ALL_STAND for total in range(17, 21)},
}

SOFT_TABLE: dict[int, tuple[Strategy, ...]] = {
    12: _ALL_HIT,
    13: (H, H, H, D, D, H, H, H, H, H),
    14: (H, H, H, D, D, H, H, H, H, H),
    15: (H, H, D, D, D, H, H, H, H, H),
    16: (H, H, D, D, D, H, H, H, H, H),
    17: (H, D, D, D, D, H, H, H, H, H),
    18: (S, DS, DS, DS, DS, S, S, H, H, H),
    19: _ALL_STAND,
    20: _ALL_STAND,
}

# Keyed by pair card value, Ace = 11.
PAIR_TABLE: dict[int, tuple[Strategy, ...]] = {
    2: (PH, PH, P, P, P, P, H, H, H, H),
    3: (PH, PH, P, P, P, P, H, H, H, H),
    4: (H, H, H, PH, PH, H, H, H, H, H),
    5: (D, D, D, D, D, D, D, D, H, H),
    6: (PH, P, P, P, P, H, H, H, H, H),
    7: (P, P, P, P, P, P, H, H, H, H),
    8: (P,) * 10,
    9: (P, P, P, P, P, S, P, P, S, S),
    10: _ALL_STAND,
    11: (P,) * 10,
}


# ─── Lookup helpers ───────────────────────────────────────────────────────────

def upcard_column(card: Card) -> int:
    """Column index for a dealer upcard: 2 → 0, …, ten-valued → 8, Ace → 9.

    Examples:
        >>> upcard_column(Card.from_str('AS'))
        9
        >>> upcard_column(Card.from_str('KD'))
        8
    """
    if card.is_ace:
        return 9
    return card.value - 2


def pair_key(card: Card) -> int:
    """PAIR_TABLE row key for a pair of `card`."""
    return 11 if card.is_ace else card.value


def lookup(total_or_pair: int, upcard_index: int, table: dict[int, tuple[Strategy, ...]]) -> Strategy:
    """Read one cell, clamping totals that fall outside the table's rows.

    Examples:
        >>> lookup(16, 8, HARD_TABLE)
        <Strategy.SURRENDER_OR_HIT: 'RH'>
        >>> lookup(4, 0, HARD_TABLE)   # hard 4 shares the 5–8 row
        <Strategy.HIT: 'H'>
    """
    key = min(max(total_or_pair, min(table)), max(table))
    return table[key][upcard_index]


def resolve(code: Strategy, allowed: list[PlayerAction], rules: Ruleset) -> PlayerAction:
    """Turn a coded recommendation into a concrete legal action.

    Each code falls back step by step; STAND is always legal and ends the chain.
    """
    def first_allowed(*candidates: PlayerAction) -> PlayerAction:
        for action in candidates:
            if action in allowed:
                return action
        return PlayerAction.STAND

    if code is Strategy.HIT:
        return first_allowed(PlayerAction.HIT)
    if code is Strategy.STAND:
        return PlayerAction.STAND
    if code is Strategy.DOUBLE_OR_HIT:
        return first_allowed(PlayerAction.DOUBLE_DOWN, PlayerAction.HIT)
    if code is Strategy.SPLIT:
        return first_allowed(PlayerAction.SPLIT, PlayerAction.HIT)
    if code is Strategy.DOUBLE_OR_STAND:
        return first_allowed(PlayerAction.DOUBLE_DOWN)
    if code is Strategy.SPLIT_IF_DAS_OR_HIT:
        if rules.double_after_split:
            return first_allowed(PlayerAction.SPLIT, PlayerAction.HIT)
        return first_allowed(PlayerAction.HIT)
    if code is Strategy.SURRENDER_OR_HIT:
        return first_allowed(PlayerAction.SURRENDER, PlayerAction.HIT)
    raise ValueError(f"Unknown strategy code: {code!r}")


# ─── Advisor ──────────────────────────────────────────────────────────────────

def recommended_code(state: GameState, allowed: list[PlayerAction] | None = None) -> Strategy:
    """Return the table code that applies to the active hand."""
    if allowed is None:
        allowed = allowed_actions(state)
    upcard = dealer_upcard(state)
    if upcard is None:
        raise InvalidPhaseError("The dealer has no upcard yet.")
    column = upcard_column(upcard)

    if PlayerAction.SPLIT in allowed:
        return lookup(pair_key(active_hand(state)[0]), column, PAIR_TABLE)
    value = active_hand_value(state)
    if value.is_soft:
        return lookup(value.total, column, SOFT_TABLE)
    return lookup(value.total, column, HARD_TABLE)


def optimal_action(state: GameState) -> PlayerAction:
    """Basic-strategy action for the active hand; always in `allowed_actions`.

    Raises:
        InvalidPhaseError: Outside PLAYER_TURN or on a finished hand.
    """
    if state.phase is not Phase.PLAYER_TURN:
        raise InvalidPhaseError(f"optimal_action() requires PLAYER_TURN, phase is {state.phase.name}")
    allowed = allowed_actions(state)
    return resolve(recommended_code(state, allowed), allowed, state.rules)

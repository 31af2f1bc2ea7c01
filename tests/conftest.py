"""
Shared pytest helpers for blackjack engine tests.

Provides convenience wrappers for building known hands and for stacking the
shoe so a round deals a chosen sequence of cards.
"""

from __future__ import annotations

import numpy as np
import pytest

from blackjack.engine.cards import Card
from blackjack.engine.game_state import GameState, Phase, PlayerAction, advance, init_state
from blackjack.engine.ruleset import Ruleset
from blackjack.engine.shoe import create_shoe, stack_shoe


def hand(*card_strs: str) -> list[Card]:
    """Build a list of face-up cards from human-readable strings.

    Examples:
        >>> [c.code for c in hand('AS', 'AC')]
        [51, 48]
    """
    return [Card.from_str(s) for s in card_strs]


def stacked_state(card_strs: list[str], rules: Ruleset | None = None, starting_bet: float = 10.0) -> GameState:
    """Fresh DEALING state whose shoe deals `card_strs` first.

    Deal order is player, dealer up, player, dealer hole, then hits. A full
    seeded deck follows the stacked cards so longer rounds never run dry.
    """
    if rules is None:
        rules = Ruleset()
    rest = create_shoe(1, np.random.default_rng(0))
    return init_state(starting_bet, rules, shoe=stack_shoe(card_strs, rest))


def deal_initial(state: GameState) -> GameState:
    """Advance through the four opening deals."""
    for _ in range(4):
        advance(state)
    return state


def advance_until(state: GameState, *phases: Phase) -> GameState:
    """Advance without actions until the round reaches one of `phases`."""
    while state.phase not in phases:
        advance(state)
    return state


def play_actions(state: GameState, *actions: PlayerAction) -> GameState:
    """Apply player actions in order, auto-advancing through dealing steps."""
    for action in actions:
        advance_until(state, Phase.PLAYER_TURN)
        advance(state, action)
    return state


@pytest.fixture
def rules() -> Ruleset:
    return Ruleset()


@pytest.fixture
def h():
    """Expose the hand() helper as a fixture for convenience."""
    return hand

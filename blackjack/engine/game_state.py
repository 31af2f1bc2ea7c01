"""
Game state management and the round transition function.

A round is a finite-state machine advanced one atomic step per call:

    DEALING → (peek) → PLAYER_TURN → DEALER_TURN → GAME_OVER

DEALING is re-entered after every split so the new hand can receive its
second card before it becomes playable. Which dealing step comes next is
decided purely by the current card counts, not by an explicit sub-state.

The state is mutated in place; `advance()` also returns it so drivers can
chain calls. A GameState lives for exactly one round.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable

import numpy as np

from .cards import Card, hand_to_str
from .errors import IllegalActionError, InvalidPhaseError, UnreachableStateError
from .hand import HandValue, bust, dealer_hand_value, format_hand_value, hand_value, player_hand_value
from .ruleset import DOUBLE_DOWN_TOTALS, Ruleset
from .shoe import cards_remaining, create_shoe, draw_card

logger = logging.getLogger(__name__)


# ─── Enumerations ─────────────────────────────────────────────────────────────

class Phase(Enum):
    DEALING = auto()
    PLAYER_TURN = auto()
    DEALER_TURN = auto()
    GAME_OVER = auto()


class PlayerAction(Enum):
    HIT = auto()
    STAND = auto()
    DOUBLE_DOWN = auto()
    SPLIT = auto()
    SURRENDER = auto()


# ─── State type ───────────────────────────────────────────────────────────────

@dataclass(eq=False)
class GameState:
    """Mutable aggregate for one round, owned exclusively by its driver.

    `bets` runs parallel to `player_hands`. `hand_index` points at the hand
    being dealt its post-split card or the hand awaiting a decision.
    """
    starting_bet: float
    shoe: np.ndarray
    dealer_hand: list[Card]
    player_hands: list[list[Card]]
    hand_index: int
    bets: list[float]
    rules: Ruleset
    phase: Phase
    surrendered: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameState):
            return NotImplemented
        return (
            self.starting_bet == other.starting_bet
            and np.array_equal(self.shoe, other.shoe)
            and self.dealer_hand == other.dealer_hand
            and self.player_hands == other.player_hands
            and self.hand_index == other.hand_index
            and self.bets == other.bets
            and self.rules == other.rules
            and self.phase == other.phase
            and self.surrendered == other.surrendered
        )


# player_strategy(state) -> PlayerAction, called only during PLAYER_TURN
PlayerStrategy = Callable[[GameState], PlayerAction]


def init_state(
    starting_bet: float,
    rules: Ruleset,
    *,
    rng: np.random.Generator | None = None,
    shoe: np.ndarray | None = None,
) -> GameState:
    """Build a fresh round in the DEALING phase.

    Args:
        starting_bet: Stake on the first hand; every split hand stakes the same.
        rules:        House rules for the round.
        rng:          Generator used to shuffle a new shoe.
        shoe:         Pre-built shoe (e.g. from `stack_shoe`); skips shuffling.

    Returns:
        GameState with one empty player hand and one bet.
    """
    if shoe is None:
        shoe = create_shoe(rules.num_decks, rng)
    return GameState(
        starting_bet=starting_bet,
        shoe=shoe,
        dealer_hand=[],
        player_hands=[[]],
        hand_index=0,
        bets=[starting_bet],
        rules=rules,
        phase=Phase.DEALING,
    )


def copy_state(state: GameState) -> GameState:
    """Return an independent deep copy of `state`."""
    return copy.deepcopy(state)


# ─── Queries ──────────────────────────────────────────────────────────────────

def active_hand(state: GameState) -> list[Card]:
    return state.player_hands[state.hand_index]


def dealer_upcard(state: GameState) -> Card | None:
    """The dealer's first (face-up) card, or None before it is dealt."""
    return state.dealer_hand[0] if state.dealer_hand else None


def hole_card_concealed(state: GameState) -> bool:
    return len(state.dealer_hand) >= 2 and state.dealer_hand[1].face_down


def aces_were_split(hands: list[list[Card]]) -> bool:
    """True once a pair of aces has been split: every hand starts with an ace."""
    return len(hands) >= 2 and all(hand and hand[0].is_ace for hand in hands)


def active_hand_value(state: GameState) -> HandValue:
    hands = state.player_hands
    return player_hand_value(hands[state.hand_index], state.rules, aces_were_split(hands))


def next_split_hand_index(state: GameState, hands: list[list[Card]] | None = None) -> int:
    """Index of the next split hand still waiting for its second card.

    Returns the current index when no such hand exists.
    """
    if hands is None:
        hands = state.player_hands
    for i in range(state.hand_index + 1, len(hands)):
        if len(hands[i]) == 1:
            return i
    return state.hand_index


def _is_pair(hand: list[Card]) -> bool:
    return len(hand) == 2 and hand[0].rank == hand[1].rank


def _split_allowed(hand: list[Card], hands: list[list[Card]], rules: Ruleset) -> bool:
    if not _is_pair(hand) or len(hands) >= rules.max_hands:
        return False
    if hand[0].is_ace:
        splits_done = len(hands) - 1 if aces_were_split(hands) else 0
        return splits_done < rules.max_ace_splits
    return True


def _hit_allowed(hands: list[list[Card]], rules: Ruleset) -> bool:
    return rules.hit_on_split_ace or not aces_were_split(hands)


def _double_allowed(hand: list[Card], hands: list[list[Card]], rules: Ruleset) -> bool:
    if len(hand) != 2 or (_is_pair(hand) and hand[0].is_ace):
        return False
    if len(hands) > 1:
        if aces_were_split(hands):
            if not rules.double_on_split_ace:
                return False
        elif not rules.double_after_split:
            return False
    totals = DOUBLE_DOWN_TOTALS[rules.double_down_on]
    if totals is None:
        return True
    value = player_hand_value(hand, rules, aces_were_split(hands))
    return value.is_hard and value.total in totals


def _surrender_allowed(state: GameState) -> bool:
    hands = state.player_hands
    return (
        state.rules.surrender
        and len(hands) == 1
        and len(hands[0]) == 2
        and hole_card_concealed(state)
    )


def hand_finished(state: GameState, hands: list[list[Card]] | None = None) -> bool:
    """Return True if the active hand can take no further decision.

    A hand is finished when it busts, totals 21 (hard, soft or natural), or
    is a split-ace hand that may neither hit nor be split again.
    """
    if hands is None:
        hands = state.player_hands
    hand = hands[state.hand_index]
    rules = state.rules
    split_aces = aces_were_split(hands)
    value = player_hand_value(hand, rules, split_aces)

    if not split_aces or rules.hit_on_split_ace:
        split_ace_finished = False
    elif _is_pair(hand) and hand[0].is_ace:
        split_ace_finished = not _split_allowed(hand, hands, rules)
    else:
        split_ace_finished = True

    return bust(hand) or split_ace_finished or value.total == 21


def allowed_actions(state: GameState) -> list[PlayerAction]:
    """Return the actions legal for the active hand, in display order.

    Raises:
        InvalidPhaseError: Outside PLAYER_TURN, or if the active hand is finished.
    """
    if state.phase is not Phase.PLAYER_TURN:
        raise InvalidPhaseError(f"allowed_actions() requires PLAYER_TURN, phase is {state.phase.name}")
    if hand_finished(state):
        raise InvalidPhaseError(
            f"Player hand {state.hand_index} is finished; no actions are allowed on it."
        )

    hands = state.player_hands
    hand = hands[state.hand_index]
    rules = state.rules

    actions: list[PlayerAction] = []
    if _hit_allowed(hands, rules):
        actions.append(PlayerAction.HIT)
    actions.append(PlayerAction.STAND)
    if _split_allowed(hand, hands, rules):
        actions.append(PlayerAction.SPLIT)
    if _double_allowed(hand, hands, rules):
        actions.append(PlayerAction.DOUBLE_DOWN)
    if _surrender_allowed(state):
        actions.append(PlayerAction.SURRENDER)
    return actions


def dealer_should_stand(value: HandValue, rules: Ruleset) -> bool:
    """Dealer stand rule: hard 17+, soft 18+, soft 17 per the ruleset, naturals."""
    if value.is_blackjack:
        return True
    if value.is_soft:
        return value.total >= 18 or (value.total == 17 and rules.dealer_stands_on_all_17)
    return value.total >= 17


# ─── Transition function ──────────────────────────────────────────────────────

def advance(state: GameState, action: PlayerAction | None = None) -> GameState:
    """Advance the round by exactly one atomic step.

    Args:
        state:  Round to advance; mutated in place.
        action: Required during PLAYER_TURN, ignored in every other phase.

    Returns:
        The same `state` object.

    Raises:
        InvalidPhaseError:     The round is already over.
        IllegalActionError:    Missing or disallowed action in PLAYER_TURN.
        UnreachableStateError: The dealing step matched no known card pattern.
    """
    phase = state.phase
    if phase is Phase.DEALING:
        _advance_dealing(state)
    elif phase is Phase.PLAYER_TURN:
        _advance_player_turn(state, action)
    elif phase is Phase.DEALER_TURN:
        _advance_dealer_turn(state)
    else:
        raise InvalidPhaseError("Game is over; no more transitions are allowed.")

    if state.phase is not phase and logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "phase %s -> %s (hand %d: %s | dealer: %s | %d cards left)",
            phase.name,
            state.phase.name,
            state.hand_index,
            hand_to_str(state.player_hands[state.hand_index]),
            hand_to_str(state.dealer_hand),
            cards_remaining(state.shoe),
        )
    return state


def _draw(state: GameState, face_down: bool = False) -> Card:
    code, state.shoe = draw_card(state.shoe)
    return Card.from_code(code, face_down=face_down)


def _advance_dealing(state: GameState) -> None:
    hands = state.player_hands
    dealer = state.dealer_hand
    n_dealer = len(dealer)
    n_first = len(hands[0])
    unsplit = len(hands) == 1

    if unsplit and n_dealer == 0 and n_first == 0:
        hands[0].append(_draw(state))
    elif unsplit and n_dealer == 0 and n_first == 1:
        dealer.append(_draw(state))
    elif unsplit and n_dealer == 1 and n_first == 1:
        hands[0].append(_draw(state))
    elif unsplit and n_dealer == 1 and n_first == 2:
        dealer.append(_draw(state, face_down=True))
        _after_hole_card(state)
    elif n_dealer == 2 and len(hands[state.hand_index]) == 1:
        _deal_split_hand(state)
    else:
        raise UnreachableStateError(
            f"No dealing step for dealer={n_dealer} cards, "
            f"player hands={[len(h) for h in hands]}, hand_index={state.hand_index}"
        )


def _after_hole_card(state: GameState) -> None:
    rules = state.rules
    full_dealer = hand_value(state.dealer_hand, rules, include_face_down=True)
    if rules.dealer_peeks and full_dealer.is_blackjack:
        state.dealer_hand[1] = state.dealer_hand[1].revealed()
        state.phase = Phase.GAME_OVER
        logger.debug("dealer peeked blackjack; round over")
        return

    player = player_hand_value(state.player_hands[0], rules, aces_split=False)
    if player.total == 21:
        state.phase = Phase.DEALER_TURN
    else:
        state.phase = Phase.PLAYER_TURN


def _deal_split_hand(state: GameState) -> None:
    state.player_hands[state.hand_index].append(_draw(state))
    if not hand_finished(state):
        state.phase = Phase.PLAYER_TURN
        return
    _move_to_next_hand(state)


def _move_to_next_hand(state: GameState) -> None:
    """Leave the active hand: deal the next split hand, or hand over to the dealer."""
    nxt = next_split_hand_index(state)
    if nxt != state.hand_index:
        state.hand_index = nxt
        state.phase = Phase.DEALING
    else:
        state.phase = Phase.DEALER_TURN


def _all_hands_bust(state: GameState) -> bool:
    return all(bust(hand) for hand in state.player_hands)


def _advance_player_turn(state: GameState, action: PlayerAction | None) -> None:
    if action is None:
        raise IllegalActionError("An action is required during the player's turn.")
    allowed = allowed_actions(state)
    if action not in allowed:
        raise IllegalActionError(
            f"Invalid action: {action.name}. Valid actions are {[a.name for a in allowed]}"
        )

    i = state.hand_index
    hands = state.player_hands

    if action is PlayerAction.HIT:
        hands[i].append(_draw(state))
        if _all_hands_bust(state):
            state.phase = Phase.GAME_OVER
        elif hand_finished(state):
            _move_to_next_hand(state)
        else:
            state.phase = Phase.PLAYER_TURN

    elif action is PlayerAction.STAND:
        _move_to_next_hand(state)

    elif action is PlayerAction.DOUBLE_DOWN:
        state.bets[i] *= 2
        hands[i].append(_draw(state))
        if _all_hands_bust(state):
            state.phase = Phase.GAME_OVER
        else:
            _move_to_next_hand(state)

    elif action is PlayerAction.SPLIT:
        second = hands[i].pop()
        hands.append([second])
        state.bets.append(state.starting_bet)
        state.phase = Phase.DEALING

    elif action is PlayerAction.SURRENDER:
        state.surrendered = True
        state.phase = Phase.GAME_OVER

    logger.debug("player %s on hand %d", action.name, i)


def _advance_dealer_turn(state: GameState) -> None:
    rules = state.rules
    if dealer_should_stand(dealer_hand_value(state.dealer_hand, rules), rules):
        state.phase = Phase.GAME_OVER
        return

    if hole_card_concealed(state):
        state.dealer_hand[1] = state.dealer_hand[1].revealed()
    else:
        state.dealer_hand.append(_draw(state))

    split_aces = aces_were_split(state.player_hands)
    all_naturals = all(
        player_hand_value(hand, rules, split_aces).is_blackjack for hand in state.player_hands
    )
    if all_naturals or dealer_should_stand(dealer_hand_value(state.dealer_hand, rules), rules):
        state.phase = Phase.GAME_OVER


# ─── Round driver ─────────────────────────────────────────────────────────────

def play_round(
    rules: Ruleset,
    strategy: PlayerStrategy,
    *,
    starting_bet: float = 1.0,
    rng: np.random.Generator | None = None,
    shoe: np.ndarray | None = None,
) -> GameState:
    """Play one complete round and return the GAME_OVER state.

    `strategy` is consulted at every PLAYER_TURN step; every other phase
    advances without an action.
    """
    state = init_state(starting_bet, rules, rng=rng, shoe=shoe)
    while state.phase is not Phase.GAME_OVER:
        if state.phase is Phase.PLAYER_TURN:
            advance(state, strategy(state))
        else:
            advance(state)
    return state


# ─── Rendering ────────────────────────────────────────────────────────────────

def format_game_state(state: GameState) -> str:
    """Render dealer and player hands for a terminal, marking the active hand."""
    rules = state.rules
    dealer_cards = " ".join(c.symbol() for c in state.dealer_hand)
    lines = [f"Dealer hand: {dealer_cards}"]
    if state.dealer_hand:
        lines[0] += f"  ({format_hand_value(dealer_hand_value(state.dealer_hand, rules))})"

    split_aces = aces_were_split(state.player_hands)
    for i, hand in enumerate(state.player_hands):
        if not hand:
            continue
        value = player_hand_value(hand, rules, split_aces)
        line = f"Player hand: {' '.join(c.symbol() for c in hand)}  ({format_hand_value(value)})"
        if len(state.player_hands) > 1:
            line += f"  bet {state.bets[i]:g}"
        if i == state.hand_index and state.phase is not Phase.GAME_OVER:
            line += " ←"
        lines.append(line)
    return "\n".join(lines)

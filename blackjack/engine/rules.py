"""
Settlement, hand comparison, and payout calculation.

Settlement order for each player hand (after the round is over):
    1. Surrendered round       → one SURRENDER outcome, half the stake lost
    2. Both Blackjack          → push
    3. Player Blackjack only   → win at the ruleset's blackjack payout
    4. Dealer Blackjack only   → loss
    5. Player bust (>21)       → loss, even if the dealer also busts
    6. Dealer bust (>21)       → win
    7. Total comparison        → higher total wins, equal totals push

Payout convention (from player's perspective):
    +N  = player wins N units
    -N  = player loses N units
     0  = push (bet returned)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from .errors import InvalidPhaseError, UnreachableStateError
from .game_state import GameState, Phase, aces_were_split
from .hand import HandValue, hand_value, player_hand_value
from .ruleset import Ruleset


class Outcome(Enum):
    WIN = auto()
    LOSS = auto()
    PUSH = auto()
    SURRENDER = auto()


class WinReason(Enum):
    DEALER_BUST = auto()
    HIGHER_HAND = auto()
    BLACKJACK = auto()


class LossReason(Enum):
    BUST = auto()
    LOWER_HAND = auto()
    DEALER_BLACKJACK = auto()


@dataclass(frozen=True)
class HandOutcome:
    outcome: Outcome
    reason: WinReason | LossReason | None = None

    @classmethod
    def won(cls, reason: WinReason) -> HandOutcome:
        return cls(Outcome.WIN, reason)

    @classmethod
    def lost(cls, reason: LossReason) -> HandOutcome:
        return cls(Outcome.LOSS, reason)

    @classmethod
    def push(cls) -> HandOutcome:
        return cls(Outcome.PUSH)

    @classmethod
    def surrendered(cls) -> HandOutcome:
        return cls(Outcome.SURRENDER)

    def __str__(self) -> str:
        if self.reason is None:
            return self.outcome.name.title()
        return f"{self.outcome.name.title()} ({self.reason.name.replace('_', ' ').lower()})"


# ─── Core settlement function ─────────────────────────────────────────────────

def settle_hand(player_value: HandValue, dealer_value: HandValue) -> HandOutcome:
    """Compare one finished player hand against the final dealer hand.

    Examples:
        >>> settle_hand(HandValue.blackjack(), HandValue.hard(20))
        HandOutcome(outcome=<Outcome.WIN: 1>, reason=<WinReason.BLACKJACK: 3>)
        >>> settle_hand(HandValue.hard(22), HandValue.hard(23)).outcome
        <Outcome.LOSS: 2>
        >>> settle_hand(HandValue.soft(18), HandValue.hard(18)).outcome
        <Outcome.PUSH: 3>
    """
    if player_value.is_blackjack and dealer_value.is_blackjack:
        return HandOutcome.push()
    if player_value.is_blackjack:
        return HandOutcome.won(WinReason.BLACKJACK)
    if dealer_value.is_blackjack:
        return HandOutcome.lost(LossReason.DEALER_BLACKJACK)

    player_total = player_value.total
    dealer_total = dealer_value.total
    if player_total > 21:
        return HandOutcome.lost(LossReason.BUST)
    if dealer_total > 21:
        return HandOutcome.won(WinReason.DEALER_BUST)
    if player_total > dealer_total:
        return HandOutcome.won(WinReason.HIGHER_HAND)
    if player_total < dealer_total:
        return HandOutcome.lost(LossReason.LOWER_HAND)
    return HandOutcome.push()


def outcomes(state: GameState) -> list[HandOutcome]:
    """Settle every player hand of a finished round.

    The dealer is valued with the hole card included, whether or not it was
    ever turned over.

    Raises:
        InvalidPhaseError: If the round is not over yet.
    """
    if state.phase is not Phase.GAME_OVER:
        raise InvalidPhaseError(f"outcomes() requires GAME_OVER, phase is {state.phase.name}")

    if state.surrendered:
        if len(state.player_hands) != 1:
            raise UnreachableStateError("A surrendered round must have exactly one hand.")
        return [HandOutcome.surrendered()]

    rules = state.rules
    dealer_value = hand_value(state.dealer_hand, rules, include_face_down=True)
    split_aces = aces_were_split(state.player_hands)
    return [
        settle_hand(player_hand_value(hand, rules, split_aces), dealer_value)
        for hand in state.player_hands
    ]


# ─── Convenience helpers ──────────────────────────────────────────────────────

def calculate_payout(result: HandOutcome, bet: float, rules: Ruleset) -> float:
    """Convert a hand outcome into net profit for the given stake.

    Examples:
        >>> rules = Ruleset()
        >>> calculate_payout(HandOutcome.won(WinReason.BLACKJACK), 10.0, rules)
        15.0
        >>> calculate_payout(HandOutcome.lost(LossReason.BUST), 10.0, rules)
        -10.0
        >>> calculate_payout(HandOutcome.surrendered(), 10.0, rules)
        -5.0
    """
    if result.outcome is Outcome.WIN:
        if result.reason is WinReason.BLACKJACK:
            return bet * rules.blackjack_payout
        return bet
    if result.outcome is Outcome.LOSS:
        return -bet
    if result.outcome is Outcome.SURRENDER:
        return -bet / 2
    return 0.0


def round_net(state: GameState) -> float:
    """Net profit of a finished round summed over all hands and their bets."""
    return sum(
        calculate_payout(result, bet, state.rules)
        for result, bet in zip(outcomes(state), state.bets)
    )


def total_staked(state: GameState) -> float:
    """Total amount put on the table this round, including splits and doubles."""
    return float(sum(state.bets))

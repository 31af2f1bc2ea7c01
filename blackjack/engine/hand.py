"""
Hand evaluation: Hard / Soft / Blackjack valuation.

Aces count 1; a single ace is promoted to 11 when that does not bust the
hand, which makes the hand soft. A two-card Ace + ten-valued hand is a
natural Blackjack, a distinct category from an ordinary 21.

Face-down cards are left out of the value unless the caller asks for them,
so the dealer's hand is valued on its visible cards until the hole card is
revealed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Sequence

from .cards import FACE_RANKS, RANK_ACE, RANK_TEN, Card
from .ruleset import Ruleset


class ValueKind(Enum):
    HARD = auto()
    SOFT = auto()
    BLACKJACK = auto()


@dataclass(frozen=True)
class HandValue:
    """Tagged hand value. A Blackjack carries total 21 but is its own kind."""

    kind: ValueKind
    total: int

    @classmethod
    def hard(cls, total: int) -> HandValue:
        return cls(ValueKind.HARD, total)

    @classmethod
    def soft(cls, total: int) -> HandValue:
        return cls(ValueKind.SOFT, total)

    @classmethod
    def blackjack(cls) -> HandValue:
        return cls(ValueKind.BLACKJACK, 21)

    @property
    def is_blackjack(self) -> bool:
        return self.kind is ValueKind.BLACKJACK

    @property
    def is_soft(self) -> bool:
        return self.kind is ValueKind.SOFT

    @property
    def is_hard(self) -> bool:
        return self.kind is ValueKind.HARD

    @property
    def is_bust(self) -> bool:
        return self.total > 21

    def __str__(self) -> str:
        return format_hand_value(self)


def format_hand_value(value: HandValue) -> str:
    """Render a value the way a table display shows it.

    Examples:
        >>> format_hand_value(HandValue.hard(12))
        '12'
        >>> format_hand_value(HandValue.soft(17))
        '7/17'
        >>> format_hand_value(HandValue.soft(11))
        'Ace'
    """
    if value.kind is ValueKind.BLACKJACK:
        return "Blackjack"
    if value.kind is ValueKind.SOFT:
        if value.total == 11:
            return "Ace"
        return f"{value.total - 10}/{value.total}"
    return str(value.total)


def _is_natural(first: Card, second: Card, rules: Ruleset) -> bool:
    ten_ranks = FACE_RANKS | {RANK_TEN} if rules.ace_and_ten_counts_as_blackjack else FACE_RANKS
    return (first.rank == RANK_ACE and second.rank in ten_ranks) or (
        second.rank == RANK_ACE and first.rank in ten_ranks
    )


def hand_value(
    cards: Sequence[Card],
    rules: Ruleset,
    aces_split: bool = False,
    include_face_down: bool = False,
) -> HandValue:
    """Value a hand as Hard, Soft or Blackjack.

    Args:
        cards:             Cards in the hand, in deal order.
        rules:             Active ruleset (blackjack-equivalence rules).
        aces_split:        True if the hand came from splitting aces.
        include_face_down: Count face-down cards too.

    Returns:
        The hand's HandValue.

    Examples:
        >>> rules = Ruleset()
        >>> hand_value([Card.from_str('AS'), Card.from_str('KH')], rules)
        HandValue(kind=<ValueKind.BLACKJACK: 3>, total=21)
        >>> hand_value([Card.from_str('AS'), Card.from_str('5H')], rules).total
        16
    """
    counted = [c for c in cards if include_face_down or not c.face_down]

    if len(counted) == 2 and _is_natural(counted[0], counted[1], rules):
        if aces_split and not rules.split_ace_can_be_blackjack:
            return HandValue.hard(21)
        return HandValue.blackjack()

    low_total = sum(c.value for c in counted)
    has_ace = any(c.is_ace for c in counted)
    if has_ace and low_total <= 11:
        return HandValue.soft(low_total + 10)
    return HandValue.hard(low_total)


def player_hand_value(cards: Sequence[Card], rules: Ruleset, aces_split: bool) -> HandValue:
    """Value a player hand (visible cards only; player cards are never hidden)."""
    return hand_value(cards, rules, aces_split=aces_split)


def dealer_hand_value(cards: Sequence[Card], rules: Ruleset) -> HandValue:
    """Value the dealer's hand on its visible cards."""
    return hand_value(cards, rules)


def bust(cards: Sequence[Card]) -> bool:
    """Return True if the all-aces-low total of the hand exceeds 21.

    Examples:
        >>> bust([Card.from_str('KH'), Card.from_str('QD'), Card.from_str('2C')])
        True
        >>> bust([Card.from_str('AH'), Card.from_str('AD'), Card.from_str('KC')])
        False
    """
    return sum(c.value for c in cards) > 21

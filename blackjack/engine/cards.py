"""
Card constants, encoding, and human-readable I/O helpers.

Card encoding (integer 0–51), used for the shoe:
    rank_index = card // 4  ->  0=2, 1=3, ..., 7=9, 8=10, 9=J, 10=Q, 11=K, 12=A
    suit_index = card % 4   ->  0=C, 1=D, 2=H, 3=S

Cards in a hand are `Card` records so the dealer's hole card can carry its
face-down flag. String representations are used at I/O boundaries only.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

# Rank value lookup: index matches rank_index. Ace counts low (1) here;
# promotion to 11 is decided by hand valuation.
RANK_VALUES: list[int] = [2, 3, 4, 5, 6, 7, 8, 9, 10, 10, 10, 10, 1]

RANK_NAMES: list[str] = ['2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A']
SUIT_NAMES: list[str] = ['C', 'D', 'H', 'S']
SUIT_SYMBOLS: list[str] = ['♣', '♦', '♥', '♠']

RANK_TEN: int = 8
RANK_JACK: int = 9
RANK_QUEEN: int = 10
RANK_KING: int = 11
RANK_ACE: int = 12

# Jack, Queen, King always pair with an Ace for blackjack; the bare Ten only
# does so when the ruleset says it counts.
FACE_RANKS: frozenset[int] = frozenset({RANK_JACK, RANK_QUEEN, RANK_KING})
TEN_VALUE_RANKS: frozenset[int] = frozenset({RANK_TEN, RANK_JACK, RANK_QUEEN, RANK_KING})

CARDS_PER_DECK: int = 52


def card_rank(card: int) -> int:
    """Return the rank index (0–12) of a card code.

    Examples:
        >>> card_rank(0)   # 2 of Clubs
        0
        >>> card_rank(51)  # Ace of Spades
        12
    """
    return card // 4


def card_suit(card: int) -> int:
    """Return the suit index (0–3) of a card code.

    Examples:
        >>> card_suit(0)   # 2 of Clubs
        0
        >>> card_suit(51)  # Ace of Spades
        3
    """
    return card % 4


def card_to_str(card: int) -> str:
    """Convert a card code to its human-readable string representation.

    Examples:
        >>> card_to_str(0)
        '2C'
        >>> card_to_str(51)
        'AS'
        >>> card_to_str(32)
        '10C'
    """
    return RANK_NAMES[card_rank(card)] + SUIT_NAMES[card_suit(card)]


def str_to_card(s: str) -> int:
    """Parse a human-readable card string to its integer code.

    The format is <rank><suit> where suit is the last character.
    Rank can be '2'-'10', 'J', 'Q', 'K', or 'A'; suit 'C', 'D', 'H' or 'S'.

    Raises:
        ValueError: If the rank or suit is not recognised.

    Examples:
        >>> str_to_card('2C')
        0
        >>> str_to_card('AS')
        51
        >>> str_to_card('10H')
        34
    """
    suit_char = s[-1].upper()
    rank_str = s[:-1].upper()
    if rank_str not in RANK_NAMES or suit_char not in SUIT_NAMES:
        raise ValueError(f"Unrecognised card string: {s!r}")
    return RANK_NAMES.index(rank_str) * 4 + SUIT_NAMES.index(suit_char)


@dataclass(frozen=True)
class Card:
    """A dealt card. Only `face_down` ever changes, via `revealed()`."""

    rank: int
    suit: int
    face_down: bool = False

    @classmethod
    def from_code(cls, code: int, face_down: bool = False) -> Card:
        return cls(rank=card_rank(code), suit=card_suit(code), face_down=face_down)

    @classmethod
    def from_str(cls, s: str, face_down: bool = False) -> Card:
        return cls.from_code(str_to_card(s), face_down=face_down)

    @property
    def code(self) -> int:
        return self.rank * 4 + self.suit

    @property
    def is_ace(self) -> bool:
        return self.rank == RANK_ACE

    @property
    def value(self) -> int:
        """Point value with Ace low."""
        return RANK_VALUES[self.rank]

    def revealed(self) -> Card:
        return replace(self, face_down=False)

    def label(self) -> str:
        """'10H'-style label, or '?' while face down."""
        if self.face_down:
            return '?'
        return RANK_NAMES[self.rank] + SUIT_NAMES[self.suit]

    def symbol(self) -> str:
        """Terminal label with a unicode suit glyph, '■' while face down."""
        if self.face_down:
            return '■'
        return RANK_NAMES[self.rank] + SUIT_SYMBOLS[self.suit]

    def __str__(self) -> str:
        return self.label()


def hand_to_str(cards: list[Card] | tuple[Card, ...]) -> str:
    """Convert a hand to a human-readable string.

    Examples:
        >>> hand_to_str([Card.from_str('AC'), Card.from_str('KS', face_down=True)])
        'AC ?'
    """
    return ' '.join(c.label() for c in cards)

"""
Shoe creation and card dealing operations.

The shoe is a numpy int8 array of card codes in draw order. Cards are
consumed from the front: drawing returns the first code and the remaining
slice, so the shoe length strictly decreases with each deal.

Integer encoding: card // 4 = rank index, card % 4 = suit index.
"""

from __future__ import annotations

import numpy as np

from .cards import CARDS_PER_DECK, str_to_card
from .errors import ShoeExhaustedError

DEFAULT_NUM_DECKS: int = 8


def create_shoe(
    num_decks: int = DEFAULT_NUM_DECKS,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Create a uniformly shuffled shoe of `num_decks` standard decks.

    Args:
        num_decks: Number of 52-card decks in the shoe.
        rng:       NumPy Generator; a fresh unseeded one is used if None.

    Returns:
        np.ndarray: int8 array of shape (num_decks * 52,).

    Examples:
        >>> shoe = create_shoe(8, np.random.default_rng(0))
        >>> len(shoe)
        416
        >>> shoe.dtype
        dtype('int8')
    """
    if rng is None:
        rng = np.random.default_rng()
    shoe = np.tile(np.arange(CARDS_PER_DECK, dtype=np.int8), num_decks)
    rng.shuffle(shoe)
    return shoe


def cards_remaining(shoe: np.ndarray) -> int:
    """Return the number of cards left in the shoe."""
    return int(len(shoe))


def draw_card(shoe: np.ndarray) -> tuple[int, np.ndarray]:
    """Draw the next card from the front of the shoe.

    Args:
        shoe: Shoe array. Not modified; the remaining cards are returned.

    Returns:
        (card_code, remaining_shoe)

    Raises:
        ShoeExhaustedError: If the shoe is empty.

    Examples:
        >>> card, rest = draw_card(stack_shoe(['AS', 'KH']))
        >>> card, len(rest)
        (51, 1)
    """
    if len(shoe) == 0:
        raise ShoeExhaustedError("Cannot deal from an empty shoe.")
    return int(shoe[0]), shoe[1:]


def stack_shoe(
    card_strs: list[str] | tuple[str, ...],
    rest: np.ndarray | None = None,
) -> np.ndarray:
    """Build a shoe whose first draws follow a forced ordering.

    Used for deterministic test setups and debugging drivers.

    Args:
        card_strs: Human-readable cards dealt first, in order.
        rest:      Cards dealt afterwards. Defaults to nothing.

    Examples:
        >>> stack_shoe(['2H', '2H']).tolist()
        [2, 2]
        >>> len(stack_shoe(['AS'], create_shoe(1)))
        53
    """
    head = np.array([str_to_card(s) for s in card_strs], dtype=np.int8)
    if rest is None:
        return head
    return np.concatenate([head, rest.astype(np.int8)])

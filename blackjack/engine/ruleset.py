"""
House-rule configuration.

A `Ruleset` is an immutable value enumerating every supported rule
variation. All fields are always present; variations a table does not offer
default to the conservative choice (no surrender, one ace split).
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import RulesetError
from .shoe import DEFAULT_NUM_DECKS


class SplitAces(Enum):
    NOT_ALLOWED = 0
    ONCE = 1
    TWICE = 2
    THRICE = 3


class MaxHandsAfterSplit(Enum):
    ONE = 1
    TWO = 2
    THREE = 3
    FOUR = 4


class DoubleDownOn(Enum):
    ANY = "any"
    NINE_TEN_ELEVEN = "9-11"
    TEN_ELEVEN = "10-11"


# Hard totals on which a two-card double is permitted (None = any hand).
DOUBLE_DOWN_TOTALS: dict[DoubleDownOn, frozenset[int] | None] = {
    DoubleDownOn.ANY: None,
    DoubleDownOn.NINE_TEN_ELEVEN: frozenset({9, 10, 11}),
    DoubleDownOn.TEN_ELEVEN: frozenset({10, 11}),
}


@dataclass(frozen=True)
class Ruleset:
    """Immutable house rules for one table."""

    # surrender
    surrender: bool = False

    # dealer
    dealer_stands_on_all_17: bool = True
    dealer_peeks: bool = True

    # splitting
    split_aces: SplitAces = SplitAces.ONCE
    hit_on_split_ace: bool = False
    max_hands_after_split: MaxHandsAfterSplit = MaxHandsAfterSplit.THREE

    # doubling
    double_down_on: DoubleDownOn = DoubleDownOn.ANY
    double_after_split: bool = True
    double_on_split_ace: bool = False

    # blackjack
    blackjack_payout: float = 1.5
    ace_and_ten_counts_as_blackjack: bool = True
    split_ace_can_be_blackjack: bool = False

    # shoe
    num_decks: int = DEFAULT_NUM_DECKS

    @property
    def max_hands(self) -> int:
        """Cap on simultaneous player hands."""
        return self.max_hands_after_split.value

    @property
    def max_ace_splits(self) -> int:
        """Number of times a pair of aces may be split (0 = never)."""
        return self.split_aces.value


# Rules the terminal driver plays by.
TABLE_RULES = Ruleset(
    surrender=True,
    dealer_stands_on_all_17=True,
    dealer_peeks=True,
    split_aces=SplitAces.TWICE,
    hit_on_split_ace=False,
    max_hands_after_split=MaxHandsAfterSplit.THREE,
    double_down_on=DoubleDownOn.ANY,
    double_after_split=True,
    double_on_split_ace=False,
    blackjack_payout=1.5,
    ace_and_ten_counts_as_blackjack=True,
    split_ace_can_be_blackjack=False,
)

_ENUM_FIELDS: dict[str, type[Enum]] = {
    "split_aces": SplitAces,
    "max_hands_after_split": MaxHandsAfterSplit,
    "double_down_on": DoubleDownOn,
}
_NUMERIC_FIELDS: frozenset[str] = frozenset({"blackjack_payout", "num_decks"})


def _coerce_enum(name: str, enum_cls: type[Enum], value: Any) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().upper().replace("-", "_")
        if key in enum_cls.__members__:
            return enum_cls[key]
    if not isinstance(value, bool):
        for member in enum_cls:
            if member.value == value:
                return member
    raise RulesetError(
        f"{name}: expected one of {[m.name for m in enum_cls]}, got {value!r}"
    )


def create_ruleset(**fields: Any) -> Ruleset:
    """Validate primitive fields and build an immutable `Ruleset`.

    Enum fields accept members or their names (case-insensitive). Omitted
    fields take the `Ruleset` defaults.

    Raises:
        RulesetError: On an unknown field, a wrongly typed value, or a
                      non-positive payout or deck count.

    Examples:
        >>> create_ruleset(split_aces="twice").split_aces
        <SplitAces.TWICE: 2>
        >>> create_ruleset(surrender=True).surrender
        True
    """
    known = {f.name for f in dataclasses.fields(Ruleset)}
    unknown = set(fields) - known
    if unknown:
        raise RulesetError(f"Unknown ruleset field(s): {sorted(unknown)}")

    values: dict[str, Any] = {}
    for name, value in fields.items():
        if name in _ENUM_FIELDS:
            values[name] = _coerce_enum(name, _ENUM_FIELDS[name], value)
        elif name in _NUMERIC_FIELDS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise RulesetError(f"{name}: expected a number, got {value!r}")
            if value <= 0:
                raise RulesetError(f"{name}: must be positive, got {value!r}")
            if name == "num_decks":
                if int(value) != value:
                    raise RulesetError(f"num_decks: expected an integer, got {value!r}")
                value = int(value)
            else:
                value = float(value)
            values[name] = value
        else:
            if not isinstance(value, bool):
                raise RulesetError(f"{name}: expected a bool, got {value!r}")
            values[name] = value
    return Ruleset(**values)


def load_ruleset(path: str | Path) -> Ruleset:
    """Read a JSON object of ruleset fields from `path`.

    Raises:
        RulesetError: If the file is not a JSON object or a field is invalid.
    """
    with open(path, encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise RulesetError(f"{path}: not valid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise RulesetError(f"{path}: expected a JSON object of ruleset fields")
    return create_ruleset(**data)

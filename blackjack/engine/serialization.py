"""
Plain-data conversion for engine values.

Every engine value converts to JSON-compatible dicts and back, field for
field, so a round can cross a process or language boundary:

    enums          → member name, e.g. "DOUBLE_DOWN"
    tagged unions  → {"type": "SOFT", "total": 17}
    cards          → {"rank": "A", "suit": "S", "face_down": false}
    shoe           → list of integer card codes in draw order

Malformed input raises SerializationError.
"""

from __future__ import annotations

import dataclasses
import json
from enum import Enum
from typing import Any

import numpy as np

from .cards import CARDS_PER_DECK, RANK_NAMES, SUIT_NAMES, Card
from .errors import RulesetError, SerializationError
from .game_state import GameState, Phase, PlayerAction
from .hand import HandValue, ValueKind
from .rules import HandOutcome, LossReason, Outcome, WinReason
from .ruleset import Ruleset, create_ruleset


def _enum_from_name(enum_cls: type[Enum], name: Any, field: str) -> Any:
    if not isinstance(name, str) or name not in enum_cls.__members__:
        raise SerializationError(f"{field}: expected one of {list(enum_cls.__members__)}, got {name!r}")
    return enum_cls[name]


def _require(data: Any, keys: tuple[str, ...], what: str) -> dict:
    if not isinstance(data, dict):
        raise SerializationError(f"{what}: expected an object, got {type(data).__name__}")
    missing = [k for k in keys if k not in data]
    if missing:
        raise SerializationError(f"{what}: missing field(s) {missing}")
    return data


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_card_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(c, dict) for c in value)


# ─── Ruleset ──────────────────────────────────────────────────────────────────

def ruleset_to_dict(rules: Ruleset) -> dict[str, Any]:
    """Examples:
        >>> ruleset_to_dict(Ruleset())["split_aces"]
        'ONCE'
    """
    out: dict[str, Any] = {}
    for f in dataclasses.fields(rules):
        value = getattr(rules, f.name)
        out[f.name] = value.name if isinstance(value, Enum) else value
    return out


def ruleset_from_dict(data: Any) -> Ruleset:
    if not isinstance(data, dict):
        raise SerializationError(f"ruleset: expected an object, got {type(data).__name__}")
    try:
        return create_ruleset(**data)
    except RulesetError as exc:
        raise SerializationError(f"ruleset: {exc}") from exc


# ─── Cards and actions ────────────────────────────────────────────────────────

def card_to_dict(card: Card) -> dict[str, Any]:
    return {
        "rank": RANK_NAMES[card.rank],
        "suit": SUIT_NAMES[card.suit],
        "face_down": card.face_down,
    }


def card_from_dict(data: Any) -> Card:
    data = _require(data, ("rank", "suit", "face_down"), "card")
    if data["rank"] not in RANK_NAMES or data["suit"] not in SUIT_NAMES:
        raise SerializationError(f"card: unknown rank/suit {data['rank']!r}/{data['suit']!r}")
    if not isinstance(data["face_down"], bool):
        raise SerializationError(f"card: face_down must be a bool, got {data['face_down']!r}")
    return Card(
        rank=RANK_NAMES.index(data["rank"]),
        suit=SUIT_NAMES.index(data["suit"]),
        face_down=data["face_down"],
    )


def action_to_dict(action: PlayerAction) -> dict[str, str]:
    return {"type": action.name}


def action_from_dict(data: Any) -> PlayerAction:
    data = _require(data, ("type",), "action")
    return _enum_from_name(PlayerAction, data["type"], "action.type")


# ─── Tagged values ────────────────────────────────────────────────────────────

def hand_value_to_dict(value: HandValue) -> dict[str, Any]:
    """Examples:
        >>> hand_value_to_dict(HandValue.soft(17))
        {'type': 'SOFT', 'total': 17}
    """
    return {"type": value.kind.name, "total": value.total}


def hand_value_from_dict(data: Any) -> HandValue:
    data = _require(data, ("type", "total"), "hand value")
    kind = _enum_from_name(ValueKind, data["type"], "hand value.type")
    total = data["total"]
    if isinstance(total, bool) or not isinstance(total, int):
        raise SerializationError(f"hand value.total: expected an int, got {total!r}")
    if kind is ValueKind.BLACKJACK and total != 21:
        raise SerializationError(f"hand value: Blackjack must total 21, got {total}")
    return HandValue(kind, total)


def hand_outcome_to_dict(result: HandOutcome) -> dict[str, Any]:
    return {
        "type": result.outcome.name,
        "reason": result.reason.name if result.reason is not None else None,
    }


def hand_outcome_from_dict(data: Any) -> HandOutcome:
    data = _require(data, ("type",), "outcome")
    outcome = _enum_from_name(Outcome, data["type"], "outcome.type")
    reason_name = data.get("reason")
    if outcome is Outcome.WIN:
        return HandOutcome(outcome, _enum_from_name(WinReason, reason_name, "outcome.reason"))
    if outcome is Outcome.LOSS:
        return HandOutcome(outcome, _enum_from_name(LossReason, reason_name, "outcome.reason"))
    if reason_name is not None:
        raise SerializationError(f"outcome: {outcome.name} takes no reason, got {reason_name!r}")
    return HandOutcome(outcome)


# ─── Game state ───────────────────────────────────────────────────────────────

_STATE_KEYS = (
    "starting_bet", "shoe", "dealer_hand", "player_hands",
    "hand_index", "bets", "rules", "phase", "surrendered",
)


def state_to_dict(state: GameState) -> dict[str, Any]:
    return {
        "starting_bet": state.starting_bet,
        "shoe": [int(c) for c in state.shoe],
        "dealer_hand": [card_to_dict(c) for c in state.dealer_hand],
        "player_hands": [[card_to_dict(c) for c in hand] for hand in state.player_hands],
        "hand_index": state.hand_index,
        "bets": list(state.bets),
        "rules": ruleset_to_dict(state.rules),
        "phase": state.phase.name,
        "surrendered": state.surrendered,
    }


def state_from_dict(data: Any) -> GameState:
    """Rebuild a GameState from `state_to_dict` output.

    Raises:
        SerializationError: On missing or mistyped fields, bad card codes, or bets that do
                            not run parallel to the player hands.
    """
    data = _require(data, _STATE_KEYS, "state")

    shoe_codes = data["shoe"]
    if not isinstance(shoe_codes, list) or not all(
        isinstance(c, int) and not isinstance(c, bool) and 0 <= c < CARDS_PER_DECK
        for c in shoe_codes
    ):
        raise SerializationError("state.shoe: expected a list of card codes 0-51")

    if not _is_number(data["starting_bet"]):
        raise SerializationError(f"state.starting_bet: expected a number, got {data['starting_bet']!r}")

    if not _is_card_list(data["dealer_hand"]):
        raise SerializationError("state.dealer_hand: expected a list of cards")

    player_hands = data["player_hands"]
    if not isinstance(player_hands, list) or not all(_is_card_list(h) for h in player_hands):
        raise SerializationError("state.player_hands: expected a list of card lists")
    if not player_hands:
        raise SerializationError("state.player_hands: at least one hand is required")

    bets = data["bets"]
    if not isinstance(bets, list) or len(bets) != len(player_hands):
        raise SerializationError("state.bets: must run parallel to player_hands")
    if not all(_is_number(b) for b in bets):
        raise SerializationError(f"state.bets: expected numbers, got {bets!r}")

    hand_index = data["hand_index"]
    if isinstance(hand_index, bool) or not isinstance(hand_index, int) or not 0 <= hand_index < len(player_hands):
        raise SerializationError(f"state.hand_index: out of range, got {hand_index!r}")

    if not isinstance(data["surrendered"], bool):
        raise SerializationError("state.surrendered: expected a bool")

    return GameState(
        starting_bet=data["starting_bet"],
        shoe=np.array(shoe_codes, dtype=np.int8),
        dealer_hand=[card_from_dict(c) for c in data["dealer_hand"]],
        player_hands=[[card_from_dict(c) for c in hand] for hand in player_hands],
        hand_index=hand_index,
        bets=list(bets),
        rules=ruleset_from_dict(data["rules"]),
        phase=_enum_from_name(Phase, data["phase"], "state.phase"),
        surrendered=data["surrendered"],
    )


def state_to_json(state: GameState) -> str:
    return json.dumps(state_to_dict(state))


def state_from_json(text: str) -> GameState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"state: not valid JSON ({exc})") from exc
    return state_from_dict(data)

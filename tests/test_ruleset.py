"""Tests for blackjack/engine/ruleset.py — Ruleset defaults, validation, JSON loading."""

from __future__ import annotations

import dataclasses
import json

import pytest

from blackjack.engine.errors import RulesetError
from blackjack.engine.ruleset import (
    DOUBLE_DOWN_TOTALS,
    TABLE_RULES,
    DoubleDownOn,
    MaxHandsAfterSplit,
    Ruleset,
    SplitAces,
    create_ruleset,
    load_ruleset,
)


class TestDefaults:
    def test_conservative_defaults(self):
        rules = Ruleset()
        assert rules.surrender is False
        assert rules.split_aces is SplitAces.ONCE
        assert rules.hit_on_split_ace is False
        assert rules.blackjack_payout == 1.5
        assert rules.ace_and_ten_counts_as_blackjack is True

    def test_derived_caps(self):
        rules = Ruleset(split_aces=SplitAces.THRICE, max_hands_after_split=MaxHandsAfterSplit.FOUR)
        assert rules.max_ace_splits == 3
        assert rules.max_hands == 4

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Ruleset().surrender = True

    def test_table_rules(self):
        assert TABLE_RULES.surrender is True
        assert TABLE_RULES.split_aces is SplitAces.TWICE

    def test_double_down_totals(self):
        assert DOUBLE_DOWN_TOTALS[DoubleDownOn.ANY] is None
        assert DOUBLE_DOWN_TOTALS[DoubleDownOn.TEN_ELEVEN] == frozenset({10, 11})


class TestCreateRuleset:
    def test_empty_gives_defaults(self):
        assert create_ruleset() == Ruleset()

    def test_enum_by_name_case_insensitive(self):
        rules = create_ruleset(split_aces="twice", double_down_on="ten_eleven")
        assert rules.split_aces is SplitAces.TWICE
        assert rules.double_down_on is DoubleDownOn.TEN_ELEVEN

    def test_enum_by_value(self):
        rules = create_ruleset(max_hands_after_split=4, double_down_on="9-11")
        assert rules.max_hands_after_split is MaxHandsAfterSplit.FOUR
        assert rules.double_down_on is DoubleDownOn.NINE_TEN_ELEVEN

    def test_enum_member_passes_through(self):
        assert create_ruleset(split_aces=SplitAces.NOT_ALLOWED).max_ace_splits == 0

    def test_unknown_field(self):
        with pytest.raises(RulesetError, match="Unknown"):
            create_ruleset(insurance=True)

    def test_bad_enum(self):
        with pytest.raises(RulesetError):
            create_ruleset(split_aces="sometimes")

    def test_bool_rejected_for_enum(self):
        with pytest.raises(RulesetError):
            create_ruleset(max_hands_after_split=True)

    def test_non_bool_flag(self):
        with pytest.raises(RulesetError):
            create_ruleset(surrender="yes")

    @pytest.mark.parametrize("payout", [0, -1.5, "1.5", True])
    def test_bad_payout(self, payout):
        with pytest.raises(RulesetError):
            create_ruleset(blackjack_payout=payout)

    def test_payout_coerced_to_float(self):
        assert create_ruleset(blackjack_payout=1).blackjack_payout == 1.0

    def test_fractional_decks_rejected(self):
        with pytest.raises(RulesetError):
            create_ruleset(num_decks=1.5)

    def test_ruleset_error_is_value_error(self):
        with pytest.raises(ValueError):
            create_ruleset(num_decks=0)


class TestLoadRuleset:
    def test_load(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"surrender": True, "split_aces": "THRICE", "num_decks": 6}))
        rules = load_ruleset(path)
        assert rules.surrender is True
        assert rules.split_aces is SplitAces.THRICE
        assert rules.num_decks == 6

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("[1, 2]")
        with pytest.raises(RulesetError):
            load_ruleset(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{surrender: yes")
        with pytest.raises(RulesetError, match="not valid JSON"):
            load_ruleset(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_ruleset(tmp_path / "missing.json")

"""Tests for blackjack/analysis/plotly_lookup.py — interactive strategy lookup."""

from __future__ import annotations

import os

import plotly.graph_objects as go
import pytest

from blackjack.analysis.plotly_lookup import (
    TABLES,
    build_strategy_lookup_figure,
    first_decision_action,
    first_decision_cards,
    save_lookup_html,
)
from blackjack.engine.game_state import Phase, PlayerAction
from blackjack.engine.hand import player_hand_value
from blackjack.engine.ruleset import TABLE_RULES, DoubleDownOn, Ruleset, SplitAces
from blackjack.solvers.basic_strategy import HARD_TABLE, UPCARD_LABELS, optimal_action
from tests.conftest import deal_initial, hand, stacked_state


@pytest.fixture(scope="module")
def fig() -> go.Figure:
    return build_strategy_lookup_figure(TABLE_RULES)


class TestFirstDecisionAction:
    def test_hard_11_doubles(self):
        assert first_decision_action("hard", 11, 0, Ruleset()) is PlayerAction.DOUBLE_DOWN

    def test_surrender_depends_on_rules(self):
        assert first_decision_action("hard", 16, 8, Ruleset()) is PlayerAction.HIT
        assert first_decision_action("hard", 16, 8, Ruleset(surrender=True)) is PlayerAction.SURRENDER

    def test_aces_split_when_allowed(self):
        assert first_decision_action("pair", 11, 0, Ruleset()) is PlayerAction.SPLIT
        assert first_decision_action("pair", 11, 0, Ruleset(split_aces=SplitAces.NOT_ALLOWED)) is PlayerAction.HIT

    def test_pair_of_fives_doubles(self):
        assert first_decision_action("pair", 5, 0, Ruleset()) is PlayerAction.DOUBLE_DOWN

    def test_split_if_das(self):
        assert first_decision_action("pair", 2, 0, Ruleset()) is PlayerAction.SPLIT
        assert first_decision_action("pair", 2, 0, Ruleset(double_after_split=False)) is PlayerAction.HIT

    def test_restricted_double_on_soft_hand(self):
        rules = Ruleset(double_down_on=DoubleDownOn.TEN_ELEVEN)
        assert first_decision_action("soft", 18, 1, Ruleset()) is PlayerAction.DOUBLE_DOWN
        assert first_decision_action("soft", 18, 1, rules) is PlayerAction.STAND


class TestFirstDecisionCards:
    def test_cards_land_on_their_row(self):
        for kind, table in TABLES.items():
            for key in table:
                cards = hand(*first_decision_cards(kind, key))
                value = player_hand_value(cards, Ruleset(), False)
                if kind == "pair":
                    assert cards[0].rank == cards[1].rank
                else:
                    assert cards[0].rank != cards[1].rank or key == 12
                    assert value.total == key
                    assert value.is_soft == (kind == "soft")


_ADVISOR_RULESETS = [
    Ruleset(),
    TABLE_RULES,
    Ruleset(surrender=True, double_down_on=DoubleDownOn.NINE_TEN_ELEVEN, double_after_split=False),
]


class TestMatchesAdvisor:
    @pytest.mark.parametrize("rules", _ADVISOR_RULESETS)
    def test_every_cell_matches_dealt_round(self, rules):
        for kind, table in TABLES.items():
            for key in table:
                if kind == "soft" and key == 12:
                    continue  # A,A is advised from the pair table
                first, second = first_decision_cards(kind, key)
                for col, upcard in enumerate(UPCARD_LABELS):
                    state = deal_initial(stacked_state([first, upcard + "C", second, "2D"], rules))
                    assert state.phase is Phase.PLAYER_TURN
                    assert first_decision_action(kind, key, col, rules) is optimal_action(state), (kind, key, upcard)


class TestBuildFigure:
    def test_three_traces(self, fig):
        assert isinstance(fig, go.Figure)
        assert len(fig.data) == 3
        assert [t.name for t in fig.data] == list(TABLES)

    def test_trace_shapes(self, fig):
        hard = fig.data[0]
        assert len(hard.z) == len(HARD_TABLE)
        assert all(len(row) == 10 for row in hard.z)
        assert list(hard.x) == ["2", "3", "4", "5", "6", "7", "8", "9", "10", "A"]

    def test_hover_shows_resolved_action(self, fig):
        hard = fig.data[0]
        row = sorted(HARD_TABLE).index(16)
        assert "Action: <b>SURRENDER</b>" in hard.customdata[row][8]
        assert "Code: RH" in hard.customdata[row][8]

    def test_hover_follows_rules(self):
        hard = build_strategy_lookup_figure(Ruleset()).data[0]
        row = sorted(HARD_TABLE).index(16)
        assert "Action: <b>HIT</b>" in hard.customdata[row][8]

    def test_default_rules(self):
        assert len(build_strategy_lookup_figure().data) == 3

    def test_single_colorbar(self, fig):
        assert [t.showscale for t in fig.data] == [False, False, True]


class TestSaveHtml:
    def test_writes_file(self, fig, tmp_path):
        path = str(tmp_path / "lookup.html")
        save_lookup_html(fig, path)
        assert os.path.exists(path)
        with open(path, encoding="utf-8") as fh:
            assert "plotly" in fh.read().lower()

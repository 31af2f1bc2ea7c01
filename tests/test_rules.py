"""Tests for blackjack/engine/rules.py — settlement and payouts."""

from __future__ import annotations

import pytest

from blackjack.engine.hand import HandValue
from blackjack.engine.rules import (
    HandOutcome,
    LossReason,
    Outcome,
    WinReason,
    calculate_payout,
    settle_hand,
)
from blackjack.engine.ruleset import Ruleset


class TestSettleHand:
    def test_both_blackjack_push(self):
        assert settle_hand(HandValue.blackjack(), HandValue.blackjack()) == HandOutcome.push()

    def test_player_blackjack_beats_dealer_21(self):
        assert settle_hand(HandValue.blackjack(), HandValue.hard(21)) == HandOutcome.won(WinReason.BLACKJACK)

    def test_dealer_blackjack_beats_player_21(self):
        assert settle_hand(HandValue.soft(21), HandValue.blackjack()) == HandOutcome.lost(LossReason.DEALER_BLACKJACK)

    def test_player_bust_loses_even_if_dealer_busts(self):
        assert settle_hand(HandValue.hard(22), HandValue.hard(24)) == HandOutcome.lost(LossReason.BUST)

    def test_dealer_bust(self):
        assert settle_hand(HandValue.hard(12), HandValue.hard(22)) == HandOutcome.won(WinReason.DEALER_BUST)

    def test_higher_total_wins(self):
        assert settle_hand(HandValue.soft(19), HandValue.hard(18)) == HandOutcome.won(WinReason.HIGHER_HAND)

    def test_lower_total_loses(self):
        assert settle_hand(HandValue.hard(17), HandValue.soft(20)) == HandOutcome.lost(LossReason.LOWER_HAND)

    def test_equal_totals_push_across_kinds(self):
        assert settle_hand(HandValue.soft(18), HandValue.hard(18)) == HandOutcome.push()


class TestHandOutcome:
    def test_constructors(self):
        assert HandOutcome.won(WinReason.DEALER_BUST).outcome is Outcome.WIN
        assert HandOutcome.lost(LossReason.BUST).outcome is Outcome.LOSS
        assert HandOutcome.push().reason is None
        assert HandOutcome.surrendered().outcome is Outcome.SURRENDER

    def test_str(self):
        assert str(HandOutcome.won(WinReason.DEALER_BUST)) == "Win (dealer bust)"
        assert str(HandOutcome.push()) == "Push"


class TestCalculatePayout:
    @pytest.mark.parametrize(
        "result, expected",
        [
            (HandOutcome.won(WinReason.BLACKJACK), 15.0),
            (HandOutcome.won(WinReason.HIGHER_HAND), 10.0),
            (HandOutcome.won(WinReason.DEALER_BUST), 10.0),
            (HandOutcome.push(), 0.0),
            (HandOutcome.lost(LossReason.BUST), -10.0),
            (HandOutcome.lost(LossReason.DEALER_BLACKJACK), -10.0),
            (HandOutcome.surrendered(), -5.0),
        ],
    )
    def test_default_payouts(self, result, expected):
        assert calculate_payout(result, 10.0, Ruleset()) == expected

    def test_six_to_five(self):
        rules = Ruleset(blackjack_payout=1.2)
        assert calculate_payout(HandOutcome.won(WinReason.BLACKJACK), 10.0, rules) == pytest.approx(12.0)

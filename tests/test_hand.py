"""Tests for blackjack/engine/hand.py — Hard / Soft / Blackjack valuation."""

from __future__ import annotations

import itertools

import pytest

from blackjack.engine.cards import Card
from blackjack.engine.hand import (
    HandValue,
    ValueKind,
    bust,
    dealer_hand_value,
    format_hand_value,
    hand_value,
    player_hand_value,
)
from blackjack.engine.ruleset import Ruleset
from tests.conftest import hand


class TestNaturals:
    @pytest.mark.parametrize("cards", [("AS", "KH"), ("QD", "AC"), ("AH", "JS")])
    def test_ace_face_is_blackjack(self, rules, cards):
        assert hand_value(hand(*cards), rules) == HandValue.blackjack()

    def test_ace_ten_is_blackjack_by_default(self, rules):
        assert hand_value(hand("AS", "10H"), rules).is_blackjack

    def test_ace_ten_soft_21_when_flag_off(self):
        rules = Ruleset(ace_and_ten_counts_as_blackjack=False)
        assert hand_value(hand("AS", "10H"), rules) == HandValue.soft(21)
        assert hand_value(hand("10H", "AS"), rules) == HandValue.soft(21)

    def test_ace_face_unaffected_by_ten_flag(self):
        rules = Ruleset(ace_and_ten_counts_as_blackjack=False)
        assert hand_value(hand("AS", "KH"), rules).is_blackjack

    def test_split_ace_not_blackjack_by_default(self, rules):
        assert hand_value(hand("AS", "KH"), rules, aces_split=True) == HandValue.hard(21)

    def test_split_ace_blackjack_when_allowed(self):
        rules = Ruleset(split_ace_can_be_blackjack=True)
        assert hand_value(hand("AS", "KH"), rules, aces_split=True).is_blackjack

    def test_three_card_21_is_not_blackjack(self, rules):
        value = hand_value(hand("7S", "7H", "7D"), rules)
        assert value == HandValue.hard(21)
        assert value != HandValue.blackjack()

    def test_blackjack_differs_from_soft_21(self):
        assert HandValue.blackjack() != HandValue.soft(21)


class TestSoftHard:
    def test_ace_five_soft_16(self, rules):
        assert hand_value(hand("AS", "5H"), rules) == HandValue.soft(16)

    def test_ace_demoted_when_promotion_busts(self, rules):
        assert hand_value(hand("AS", "5H", "9C"), rules) == HandValue.hard(15)

    def test_only_one_ace_promoted(self, rules):
        assert hand_value(hand("AS", "AH"), rules) == HandValue.soft(12)
        assert hand_value(hand("AS", "AH", "AD", "AC"), rules) == HandValue.soft(14)

    def test_single_ace_is_soft_11(self, rules):
        value = hand_value(hand("AS"), rules)
        assert value == HandValue.soft(11)
        assert format_hand_value(value) == "Ace"

    def test_no_ace_is_hard(self, rules):
        assert hand_value(hand("10S", "6H"), rules).kind is ValueKind.HARD

    def test_empty_hand(self, rules):
        assert hand_value([], rules) == HandValue.hard(0)

    def test_non_bust_payload_at_most_21(self, rules):
        deck = [Card.from_code(c) for c in range(0, 52, 4)]
        for n in (2, 3):
            for combo in itertools.combinations_with_replacement(deck, n):
                cards = list(combo)
                value = hand_value(cards, rules)
                if not bust(cards):
                    assert value.total <= 21


class TestFaceDown:
    def test_hole_card_excluded(self, rules):
        dealer = [Card.from_str("10S"), Card.from_str("AH", face_down=True)]
        assert dealer_hand_value(dealer, rules) == HandValue.hard(10)

    def test_hole_card_included_on_request(self, rules):
        dealer = [Card.from_str("10S"), Card.from_str("AH", face_down=True)]
        assert hand_value(dealer, rules, include_face_down=True).is_blackjack

    def test_player_value_split_flag(self, rules):
        assert player_hand_value(hand("AS", "QH"), rules, aces_split=True) == HandValue.hard(21)


class TestBust:
    def test_bust(self):
        assert bust(hand("KH", "QD", "2C"))

    def test_aces_low(self):
        assert not bust(hand("AH", "AD", "KC"))

    def test_exactly_21_not_bust(self):
        assert not bust(hand("KH", "QD", "AC"))

    def test_bust_matches_ace_low_sum(self):
        for combo in itertools.product(range(0, 52, 4), repeat=3):
            cards = [Card.from_code(c) for c in combo]
            assert bust(cards) == (sum(c.value for c in cards) > 21)


class TestFormatting:
    @pytest.mark.parametrize(
        "value, text",
        [
            (HandValue.hard(12), "12"),
            (HandValue.soft(17), "7/17"),
            (HandValue.soft(11), "Ace"),
            (HandValue.blackjack(), "Blackjack"),
        ],
    )
    def test_format(self, value, text):
        assert format_hand_value(value) == text
        assert str(value) == text

    def test_bust_property(self):
        assert HandValue.hard(22).is_bust
        assert not HandValue.soft(21).is_bust

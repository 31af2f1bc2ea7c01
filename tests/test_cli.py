"""Tests for blackjack/cli.py — prompts, bookkeeping, and sub-commands.

Keyboard input is scripted through the `input_fn` hook; answering "1" is
always valid since every allowed-action list has at least one entry, so
scripted rounds always terminate.
"""

from __future__ import annotations

import argparse
import json

import numpy as np
import pytest

from blackjack.cli import (
    ACTION_NAMES,
    _upcard,
    build_parser,
    green,
    main,
    paint_by_sign,
    play,
    play_one_round,
    prompt_action,
    prompt_choice,
    red,
    settle_round,
)
from blackjack.engine.game_state import Phase, PlayerAction, advance
from blackjack.engine.rules import round_net, total_staked
from blackjack.engine.ruleset import TABLE_RULES, Ruleset
from tests.conftest import deal_initial, stacked_state


def scripted(*answers: str):
    """input_fn returning `answers` in order, then '1' forever."""
    queue = list(answers)
    prompts: list[str] = []

    def _input(prompt: str) -> str:
        prompts.append(prompt)
        return queue.pop(0) if queue else "1"

    _input.prompts = prompts
    return _input


def scripted_then_eof(*answers: str):
    """input_fn returning `answers` in order, then raising EOFError."""
    queue = list(answers)

    def _input(prompt: str) -> str:
        if not queue:
            raise EOFError
        return queue.pop(0)

    return _input


# ─── Terminal helpers ─────────────────────────────────────────────────────────


class TestColours:
    def test_paint_by_sign(self):
        assert paint_by_sign("+$1.00", 100) == green("+$1.00")
        assert paint_by_sign("-$1.00", -100) == red("-$1.00")
        assert paint_by_sign("$0", 0) == "$0"

    def test_every_action_named(self):
        assert set(ACTION_NAMES) == set(PlayerAction)


# ─── Prompts ──────────────────────────────────────────────────────────────────


class TestPrompts:
    def test_valid_choice(self):
        assert prompt_choice("? ", 3, scripted("2")) == 1

    def test_reprompts_until_valid(self, capsys):
        fake = scripted("", "abc", "0", "4", " 3 ")
        assert prompt_choice("? ", 3, fake) == 2
        assert capsys.readouterr().out.count("Invalid input. Please try again.") == 4
        assert len(fake.prompts) == 5

    def test_prompt_action_lists_options(self, capsys):
        allowed = [PlayerAction.HIT, PlayerAction.STAND, PlayerAction.SURRENDER]
        assert prompt_action(allowed, scripted("3")) is PlayerAction.SURRENDER
        out = capsys.readouterr().out
        assert "1: Hit" in out
        assert "3: Surrender" in out


# ─── Round play and bookkeeping ───────────────────────────────────────────────


class TestSettleRound:
    def test_blackjack_credits_stake_plus_winnings(self, capsys):
        state = deal_initial(stacked_state(["AS", "9C", "KH", "8D"]))
        advance(state)
        assert state.phase is Phase.GAME_OVER
        assert settle_round(state) == 25.0
        assert "Blackjack!" in capsys.readouterr().out

    def test_credits_minus_stakes_equal_net(self, capsys):
        state = deal_initial(stacked_state(["8S", "9C", "8H", "7D", "3C", "KD", "2S", "10H"]))
        advance(state, PlayerAction.SPLIT)
        advance(state)
        advance(state, PlayerAction.DOUBLE_DOWN)
        advance(state)
        advance(state, PlayerAction.STAND)
        advance(state)
        advance(state)
        assert settle_round(state) - total_staked(state) == round_net(state) == 30.0

    def test_surrender_returns_half(self, capsys):
        state = deal_initial(stacked_state(["10S", "9C", "6H", "8D"], Ruleset(surrender=True), starting_bet=1.0))
        advance(state, PlayerAction.SURRENDER)
        assert settle_round(state) == 0.5
        assert "Surrendered." in capsys.readouterr().out


class TestPlay:
    def test_auto_round_reaches_game_over(self, capsys):
        state = play_one_round(TABLE_RULES, auto=True, rng=np.random.default_rng(1), delay=0)
        assert state.phase is Phase.GAME_OVER
        assert "Dealer hand:" in capsys.readouterr().out

    def test_interactive_round_reaches_game_over(self, capsys):
        state = play_one_round(TABLE_RULES, auto=False, rng=np.random.default_rng(1), delay=0, input_fn=scripted())
        assert state.phase is Phase.GAME_OVER

    def test_autoplay_prints_bankroll_each_round(self, capsys):
        final = play(TABLE_RULES, auto=True, bankroll=100.0, rounds=3, seed=4, delay=0)
        assert capsys.readouterr().out.count("Bankroll: $") == 3
        # At most three doubled hands are staked per flat-bet round.
        assert 100.0 - 3 * 8 <= final <= 100.0 + 3 * 8

    def test_interactive_stops_on_eof(self, capsys):
        final = play(TABLE_RULES, auto=True, rounds=None, seed=4, delay=0, input_fn=scripted_then_eof())
        assert isinstance(final, float)
        assert capsys.readouterr().out.count("Bankroll: $") == 1

    def test_play_is_reproducible(self, capsys):
        a = play(TABLE_RULES, auto=True, rounds=5, seed=11, delay=0)
        b = play(TABLE_RULES, auto=True, rounds=5, seed=11, delay=0)
        assert a == b


# ─── Argument parsing ─────────────────────────────────────────────────────────


class TestParser:
    @pytest.mark.parametrize("text, value", [("A", 1), ("a", 1), ("11", 1), ("K", 10), ("10", 10), ("6", 6)])
    def test_upcard(self, text, value):
        assert _upcard(text) == value

    @pytest.mark.parametrize("text", ["0", "12", "X"])
    def test_bad_upcard(self, text):
        with pytest.raises(argparse.ArgumentTypeError):
            _upcard(text)

    def test_defaults(self):
        args = build_parser().parse_args(["simulate"])
        assert args.cmd == "simulate"
        assert args.strategy == "optimal"
        assert args.seconds == 5.0

    def test_bad_strategy(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["simulate", "--strategy", "martingale"])


# ─── main() ───────────────────────────────────────────────────────────────────


class TestMain:
    def test_chart(self, capsys):
        assert main(["chart"]) == 0
        assert "Basic Strategy: Hard totals" in capsys.readouterr().out

    def test_dealer_single_upcard(self, capsys):
        assert main(["--seed", "1", "dealer", "--upcard", "6", "--iterations", "500"]) == 0
        assert "Dealer final totals from upcard 6 (500 hands):" in capsys.readouterr().out

    def test_dealer_all_upcards(self, capsys):
        assert main(["--seed", "1", "dealer", "--iterations", "100"]) == 0
        assert "Dealer Final Totals by Upcard" in capsys.readouterr().out

    def test_autoplay(self, capsys):
        assert main(["--seed", "3", "autoplay", "--rounds", "2", "--delay", "0"]) == 0
        assert capsys.readouterr().out.count("Bankroll: $") == 2

    def test_play_with_scripted_input(self, capsys):
        assert main(["--seed", "3", "play", "--rounds", "2", "--delay", "0"], input_fn=scripted()) == 0
        assert capsys.readouterr().out.count("Bankroll: $") == 2

    def test_simulate_one_batch(self, capsys):
        assert main(["--seed", "0", "simulate", "--seconds", "0", "--workers", "1"]) == 0
        out = capsys.readouterr().out
        assert "Loss/earnings distribution:" in out
        assert "Strategy: optimal" in out

    def test_rules_file(self, tmp_path, capsys):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"surrender": False, "num_decks": 2}))
        assert main(["--rules", str(path), "--seed", "0", "autoplay", "--rounds", "1", "--delay", "0"]) == 0

    def test_missing_rules_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["--rules", str(tmp_path / "nope.json"), "chart"])
        assert exc.value.code == 2

    def test_invalid_rules_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"split_aces": "sometimes"}))
        with pytest.raises(SystemExit):
            main(["--rules", str(path), "chart"])

    def test_menu_reprompts_then_autoplays(self, capsys, monkeypatch):
        monkeypatch.setattr("blackjack.cli.time.sleep", lambda s: None)
        assert main(["--seed", "2"], input_fn=scripted_then_eof("9", "2")) == 0
        out = capsys.readouterr().out
        assert "Welcome to Blackjack!" in out
        assert "Invalid input. Please try again." in out
        assert "Bankroll: $" in out

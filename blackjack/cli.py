"""
Terminal driver for the blackjack engine.

Running ``blackjack`` with no sub-command shows the three-item menu:

    1: Play game         interactive rounds against the dealer
    2: Auto play         rounds played by the basic-strategy advisor
    3: Monte Carlo       timed parallel simulation with a live distribution

Sub-commands expose the same drivers plus the dealer-only simulation and
the strategy chart directly. Malformed keyboard input re-prompts; engine
errors are never caught here since the driver only offers legal actions.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Callable

import numpy as np

from blackjack.analysis.simulator import (
    DEFAULT_WORKERS,
    FLAT_BET,
    STRATEGIES,
    run_timed_simulation,
    simulate_all_upcards,
    simulate_dealer_stand_outcome,
)
from blackjack.analysis.strategy_report import (
    format_dealer_outcome_report,
    format_distribution,
    format_strategy_chart,
)
from blackjack.engine.errors import RulesetError
from blackjack.engine.game_state import (
    GameState,
    Phase,
    PlayerAction,
    advance,
    allowed_actions,
    format_game_state,
    init_state,
)
from blackjack.engine.rules import HandOutcome, LossReason, WinReason, calculate_payout, outcomes, total_staked
from blackjack.engine.ruleset import TABLE_RULES, Ruleset, load_ruleset
from blackjack.solvers.basic_strategy import optimal_action

logger = logging.getLogger(__name__)

DEFAULT_BANKROLL: float = 1000.0
DEAL_DELAY_S: float = 0.15

InputFn = Callable[[str], str]

# ─── Terminal helpers ─────────────────────────────────────────────────────────


def clear_screen() -> None:
    print("\x1b[2J\x1b[1;1H", end="")


def yellow(text: str) -> str:
    return f"\x1b[33m{text}\x1b[0m"


def red(text: str) -> str:
    return f"\x1b[31m{text}\x1b[0m"


def green(text: str) -> str:
    return f"\x1b[32m{text}\x1b[0m"


def paint_by_sign(label: str, cents: int) -> str:
    if cents > 0:
        return green(label)
    if cents < 0:
        return red(label)
    return label


ACTION_NAMES: dict[PlayerAction, str] = {
    PlayerAction.HIT: "Hit",
    PlayerAction.STAND: "Stand",
    PlayerAction.DOUBLE_DOWN: "Double Down",
    PlayerAction.SPLIT: "Split",
    PlayerAction.SURRENDER: "Surrender",
}

_OUTCOME_MESSAGES: dict[HandOutcome, str] = {
    HandOutcome.won(WinReason.BLACKJACK): green("Blackjack!"),
    HandOutcome.won(WinReason.DEALER_BUST): green("Dealer busts!"),
    HandOutcome.won(WinReason.HIGHER_HAND): green("Player Wins!"),
    HandOutcome.push(): yellow("Push."),
    HandOutcome.lost(LossReason.BUST): red("Bust."),
    HandOutcome.lost(LossReason.LOWER_HAND): red("Dealer wins."),
    HandOutcome.lost(LossReason.DEALER_BLACKJACK): red("Dealer has blackjack."),
    HandOutcome.surrendered(): yellow("Surrendered."),
}


# ─── Prompts ──────────────────────────────────────────────────────────────────


def prompt_choice(prompt: str, n_options: int, input_fn: InputFn = input) -> int:
    """Read a number in 1..n_options, re-prompting until one is entered.

    Returns:
        The zero-based index of the chosen option.
    """
    while True:
        raw = input_fn(prompt).strip()
        if raw.isdigit() and 1 <= int(raw) <= n_options:
            return int(raw) - 1
        print("Invalid input. Please try again.")


def prompt_action(allowed: list[PlayerAction], input_fn: InputFn = input) -> PlayerAction:
    for i, action in enumerate(allowed, start=1):
        print(f"{i}: {ACTION_NAMES[action]}")
    return allowed[prompt_choice("Please enter your move: ", len(allowed), input_fn)]


# ─── Round play ───────────────────────────────────────────────────────────────


def settle_round(state: GameState) -> float:
    """Print each hand's outcome and return the amount credited back."""
    returned = 0.0
    for result, bet in zip(outcomes(state), state.bets):
        print(_OUTCOME_MESSAGES.get(result, str(result)))
        returned += bet + calculate_payout(result, bet, state.rules)
    return returned


def play_one_round(
    rules: Ruleset,
    *,
    auto: bool,
    rng: np.random.Generator,
    delay: float = DEAL_DELAY_S,
    input_fn: InputFn = input,
) -> GameState:
    """Drive one round to GAME_OVER, redrawing the table after every step."""
    state = init_state(FLAT_BET, rules, rng=rng)
    while state.phase is not Phase.GAME_OVER:
        clear_screen()
        print(format_game_state(state))
        if state.phase is Phase.PLAYER_TURN:
            if auto:
                action = optimal_action(state)
            else:
                action = prompt_action(allowed_actions(state), input_fn)
            advance(state, action)
        else:
            if delay > 0:
                time.sleep(delay)
            advance(state)
    clear_screen()
    print(format_game_state(state))
    return state


def play(
    rules: Ruleset,
    *,
    auto: bool = False,
    bankroll: float = DEFAULT_BANKROLL,
    rounds: int | None = None,
    seed: int | None = None,
    delay: float = DEAL_DELAY_S,
    input_fn: InputFn = input,
) -> float:
    """Play rounds at a flat bet until `rounds` are done or input ends.

    Each round debits every stake put on the table (the flat bet plus one
    more per split or double) and credits stakes plus winnings back.

    Returns:
        The final bankroll.
    """
    rng = np.random.default_rng(seed)
    played = 0
    while rounds is None or played < rounds:
        starting_balance = bankroll
        state = play_one_round(rules, auto=auto, rng=rng, delay=delay, input_fn=input_fn)
        bankroll -= total_staked(state)
        bankroll += settle_round(state)
        played += 1

        change = bankroll - starting_balance
        if change > 0:
            delta = green(f"(+${change:.2f})")
        elif change < 0:
            delta = red(f"(-${-change:.2f})")
        else:
            delta = ""
        print(f"Bankroll: ${bankroll:.2f} {delta}".rstrip())
        logger.info("round %d finished, bankroll %.2f", played, bankroll)

        if rounds is None:
            try:
                input_fn("Press Enter to play again:")
            except EOFError:
                break
    return bankroll


# ─── Simulations ──────────────────────────────────────────────────────────────


def run_simulation(
    rules: Ruleset,
    *,
    seconds: float = 5.0,
    workers: int = DEFAULT_WORKERS,
    strategy: str = "optimal",
    seed: int | None = None,
    clear: bool = True,
) -> None:
    """Timed Monte Carlo run printing the running distribution after each batch."""
    start = time.monotonic()

    def on_update(histogram: dict[int, int], n_rounds: int) -> None:
        if clear:
            clear_screen()
        format_distribution(histogram, n_rounds, paint=paint_by_sign)
        print(f"Simulated {n_rounds:,} rounds in {time.monotonic() - start:.2f} seconds")

    result = run_timed_simulation(
        rules,
        seconds,
        on_update,
        n_workers=workers,
        strategy=strategy,
        seed=seed,
    )
    print(result)


def run_dealer_simulation(upcard: int | None, iterations: int, seed: int | None = None) -> None:
    """Print dealer final totals for one upcard, or every upcard if None."""
    if upcard is None:
        format_dealer_outcome_report(simulate_all_upcards(iterations, seed=seed))
        return
    hist = simulate_dealer_stand_outcome(upcard, iterations, seed=seed)
    label = "A" if upcard == 1 else str(upcard)
    print(f"Dealer final totals from upcard {label} ({iterations:,} hands):")
    for total in sorted(hist):
        name = "Bust" if total > 21 else str(total)
        print(f"  {name:>4} ({total}): {hist[total] / iterations * 100:6.2f}%  ({hist[total]:,})")


# ─── Argument parsing ─────────────────────────────────────────────────────────


def _upcard(value: str) -> int:
    text = value.strip().upper()
    if text == "A":
        return 1
    if text in ("J", "Q", "K"):
        return 10
    try:
        n = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid upcard {value!r}") from exc
    if not 1 <= n <= 11:
        raise argparse.ArgumentTypeError(f"upcard must be 2-10 or A, got {value!r}")
    return 1 if n == 11 else n


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="blackjack", description="Blackjack rules engine: play, auto play and simulate.")
    ap.add_argument("--rules", metavar="PATH", help="JSON file of ruleset fields (default: table rules)")
    ap.add_argument("--seed", type=int, default=None, help="Seed for shuffles and simulations")
    ap.add_argument("--verbose", "-v", action="store_true", help="Log engine transitions (DEBUG)")
    sub = ap.add_subparsers(dest="cmd")

    for name, help_text in (("play", "Play interactively."), ("autoplay", "Let basic strategy play.")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--bankroll", type=float, default=DEFAULT_BANKROLL)
        p.add_argument("--rounds", type=int, default=None, help="Stop after this many rounds")
        p.add_argument("--delay", type=float, default=DEAL_DELAY_S, help="Pause between dealing steps (s)")

    ap_s = sub.add_parser("simulate", help="Timed Monte Carlo simulation with a live distribution.")
    ap_s.add_argument("--seconds", type=float, default=5.0)
    ap_s.add_argument("--workers", type=int, default=DEFAULT_WORKERS)
    ap_s.add_argument("--strategy", choices=STRATEGIES, default="optimal")

    ap_d = sub.add_parser("dealer", help="Dealer-only infinite-deck simulation.")
    ap_d.add_argument("--upcard", type=_upcard, default=None, help="2-10 or A (default: all upcards)")
    ap_d.add_argument("--iterations", type=int, default=100_000)

    sub.add_parser("chart", help="Print the basic-strategy tables.")
    return ap


def _menu(input_fn: InputFn = input) -> str:
    print("Welcome to Blackjack!")
    print("1: Play game")
    print("2: Auto play")
    print("3: Monte Carlo Simulation")
    choice = prompt_choice("Please enter a number between 1 and 3: ", 3, input_fn)
    return ("play", "autoplay", "simulate")[choice]


def main(argv: list[str] | None = None, input_fn: InputFn = input) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        rules = load_ruleset(args.rules) if args.rules else TABLE_RULES
    except (OSError, RulesetError) as exc:
        parser.error(str(exc))

    cmd = args.cmd
    if cmd is None:
        cmd = _menu(input_fn)

    if cmd in ("play", "autoplay"):
        try:
            play(
                rules,
                auto=(cmd == "autoplay"),
                bankroll=getattr(args, "bankroll", DEFAULT_BANKROLL),
                rounds=getattr(args, "rounds", None),
                seed=args.seed,
                delay=getattr(args, "delay", DEAL_DELAY_S),
                input_fn=input_fn,
            )
        except (KeyboardInterrupt, EOFError):
            print()
    elif cmd == "simulate":
        run_simulation(
            rules,
            seconds=getattr(args, "seconds", 5.0),
            workers=getattr(args, "workers", DEFAULT_WORKERS),
            strategy=getattr(args, "strategy", "optimal"),
            seed=args.seed,
        )
    elif cmd == "dealer":
        run_dealer_simulation(args.upcard, args.iterations, seed=args.seed)
    elif cmd == "chart":
        format_strategy_chart()
    return 0


if __name__ == "__main__":
    sys.exit(main())

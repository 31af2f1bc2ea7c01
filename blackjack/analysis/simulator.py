"""
Monte Carlo simulators for blackjack.

Two independent entry points:

    simulate_dealer_stand_outcome()  dealer-only, infinite deck, one upcard.
                                     Isolated from the round state machine;
                                     used for dealer bust/stand percentages.
    simulate_rounds()                full rounds through the engine with a
                                     player strategy, reshuffling every round.

Full-round runs can be fanned out over a multiprocessing.Pool. Each worker
plays a private GameState per round with its own numpy Generator spawned
from one SeedSequence, so runs are reproducible for a given seed and worker
count. Worker results are merged after every batch; nothing is shared.

The earnings distribution is a histogram keyed by net result in cents
(e.g. -100 = one unit lost, 150 = blackjack win at 3:2).
"""

from __future__ import annotations

import logging
import math
import os
import time
from dataclasses import dataclass
from multiprocessing import Pool
from typing import Callable

import numpy as np

from blackjack.engine.game_state import GameState, PlayerAction, PlayerStrategy, allowed_actions, play_round
from blackjack.engine.rules import round_net
from blackjack.engine.ruleset import Ruleset
from blackjack.solvers.basic_strategy import optimal_action

logger = logging.getLogger(__name__)

# ─── Constants ────────────────────────────────────────────────────────────────

FLAT_BET: float = 1.0
"""Stake per round used by simulations and the terminal driver."""

DEFAULT_WORKERS: int = min(16, os.cpu_count() or 1)

BATCH_SIZE: int = 2_000
"""Rounds each worker plays between progress reports of a timed run."""

DEALER_CARD_VALUES: np.ndarray = np.array([1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 10, 10, 10], dtype=np.int64)
"""Infinite-deck card values by rank (Ace = 1)."""

RNG_BATCH: int = 1_000
"""Random ranks drawn per numpy call in the dealer-only simulation."""

STRATEGIES: tuple[str, ...] = ("optimal", "random")


# ─── Result type ──────────────────────────────────────────────────────────────


@dataclass
class SimulationResult:
    """Aggregate statistics from a full-round Monte Carlo run.

    Attributes:
        n_rounds:       Number of rounds simulated.
        mean_ev:        Mean net result per round in units (positive = player wins).
        std_ev:         Sample standard deviation of per-round results.
        ci_95_low:      Lower bound of 95% confidence interval for mean_ev.
        ci_95_high:     Upper bound of 95% confidence interval for mean_ev.
        house_edge_pct: -mean_ev * 100. Positive = house advantage.
        strategy:       Name of the player strategy.
        n_wins:         Rounds with net > 0.
        n_losses:       Rounds with net < 0.
        n_pushes:       Rounds with net == 0.
        distribution:   {net_cents: count} histogram of per-round results.
        payouts:        Raw per-round results, or None unless requested.
    """

    n_rounds: int
    mean_ev: float
    std_ev: float
    ci_95_low: float
    ci_95_high: float
    house_edge_pct: float
    strategy: str
    n_wins: int
    n_losses: int
    n_pushes: int
    distribution: dict[int, int]
    payouts: np.ndarray | None = None

    def __str__(self) -> str:
        sign = "+" if self.mean_ev >= 0 else ""
        edge_sign = "-" if self.house_edge_pct < 0 else "+"
        return (
            f"Rounds: {self.n_rounds:,} | "
            f"EV: {sign}{self.mean_ev:.4f} ({sign}{self.mean_ev * 100:.2f}%) | "
            f"95% CI: [{self.ci_95_low:.4f}, {self.ci_95_high:.4f}] | "
            f"House edge: {edge_sign}{abs(self.house_edge_pct):.2f}% | "
            f"Strategy: {self.strategy}"
        )


# ─── Dealer-only simulation ───────────────────────────────────────────────────


def simulate_dealer_stand_outcome(
    upcard: int,
    iterations: int,
    seed: int | None = None,
) -> dict[int, int]:
    """Histogram of the dealer's final total drawing from one upcard.

    Infinite deck: every draw is a uniform rank. The dealer draws until the
    hand value reaches 17, where a single ace counts 11 if that does not
    bust, so soft 17 stands.

    Args:
        upcard:     Dealer upcard value, 1 = Ace … 10 = any ten-valued card.
        iterations: Number of dealer hands to simulate.
        seed:       Seed for numpy's Generator; None for a non-deterministic run.

    Returns:
        {final_total: count}, totals in 17..26. Counts sum to `iterations`.

    Examples:
        >>> hist = simulate_dealer_stand_outcome(6, 1_000, seed=1)
        >>> sum(hist.values())
        1000
        >>> min(hist) >= 17
        True
    """
    if not 1 <= upcard <= 10:
        raise ValueError(f"upcard must be 1 (Ace) to 10, got {upcard}")
    if iterations < 0:
        raise ValueError(f"iterations must be non-negative, got {iterations}")

    rng = np.random.default_rng(seed)
    ranks = rng.integers(0, 13, size=RNG_BATCH)
    pos = 0

    results: dict[int, int] = {}
    for _ in range(iterations):
        low = upcard
        has_ace = upcard == 1
        value = 0
        while value < 17:
            if pos == RNG_BATCH:
                ranks = rng.integers(0, 13, size=RNG_BATCH)
                pos = 0
            card = int(DEALER_CARD_VALUES[ranks[pos]])
            pos += 1
            has_ace = has_ace or card == 1
            low += card
            value = low + 10 if has_ace and low + 10 <= 21 else low
        results[value] = results.get(value, 0) + 1
    return results


def simulate_all_upcards(iterations: int, seed: int | None = None) -> dict[int, dict[int, int]]:
    """Run `simulate_dealer_stand_outcome` for every upcard 1..10."""
    seeds = np.random.SeedSequence(seed).generate_state(10)
    return {
        upcard: simulate_dealer_stand_outcome(upcard, iterations, seed=int(s))
        for upcard, s in zip(range(1, 11), seeds)
    }


# ─── Strategy factories ───────────────────────────────────────────────────────


def make_optimal_strategy() -> PlayerStrategy:
    """Basic-strategy player."""
    return optimal_action


def make_random_strategy(rng: np.random.Generator) -> PlayerStrategy:
    """Player choosing uniformly among the currently legal actions."""

    def _strategy(state: GameState) -> PlayerAction:
        actions = allowed_actions(state)
        return actions[int(rng.integers(len(actions)))]

    return _strategy


def make_strategy(name: str, rng: np.random.Generator | None = None) -> PlayerStrategy:
    """Return the strategy registered under `name` ('optimal' or 'random')."""
    if name == "optimal":
        return make_optimal_strategy()
    if name == "random":
        return make_random_strategy(rng if rng is not None else np.random.default_rng())
    raise ValueError(f"Unknown strategy {name!r}; expected one of {STRATEGIES}")


# ─── Histogram helpers ────────────────────────────────────────────────────────


def distribution_from_payouts(payouts: np.ndarray) -> dict[int, int]:
    """Bucket per-round results by net cents.

    Examples:
        >>> distribution_from_payouts(np.array([1.0, -1.0, 1.5, 1.0]))
        {-100: 1, 100: 2, 150: 1}
    """
    cents = np.rint(np.asarray(payouts, dtype=np.float64) * 100).astype(np.int64)
    keys, counts = np.unique(cents, return_counts=True)
    return {int(k): int(c) for k, c in zip(keys, counts)}


def merge_distributions(*histograms: dict[int, int]) -> dict[int, int]:
    merged: dict[int, int] = {}
    for hist in histograms:
        for key, count in hist.items():
            merged[key] = merged.get(key, 0) + count
    return dict(sorted(merged.items()))


# ─── Full-round simulation ────────────────────────────────────────────────────


def _play_batch(
    rules: Ruleset,
    n_rounds: int,
    strategy_name: str,
    seed: int | np.random.SeedSequence | None,
    starting_bet: float,
) -> np.ndarray:
    """Play `n_rounds` rounds on a private Generator; returns per-round nets.

    Top-level so it can be shipped to Pool workers.
    """
    rng = np.random.default_rng(seed)
    strategy = make_strategy(strategy_name, rng)
    nets = np.empty(n_rounds, dtype=np.float64)
    for i in range(n_rounds):
        state = play_round(rules, strategy, starting_bet=starting_bet, rng=rng)
        nets[i] = round_net(state)
    return nets


def _summarise(payouts: np.ndarray, strategy_name: str, return_payouts: bool) -> SimulationResult:
    n = len(payouts)
    if n == 0:
        raise ValueError("Cannot summarise an empty simulation.")
    mean = float(np.mean(payouts))
    std = float(np.std(payouts, ddof=1)) if n > 1 else 0.0
    ci_margin = 1.96 * std / math.sqrt(n)
    return SimulationResult(
        n_rounds=n,
        mean_ev=mean,
        std_ev=std,
        ci_95_low=mean - ci_margin,
        ci_95_high=mean + ci_margin,
        house_edge_pct=-mean * 100.0,
        strategy=strategy_name,
        n_wins=int(np.count_nonzero(payouts > 0)),
        n_losses=int(np.count_nonzero(payouts < 0)),
        n_pushes=int(np.count_nonzero(payouts == 0)),
        distribution=distribution_from_payouts(payouts),
        payouts=payouts if return_payouts else None,
    )


def simulate_rounds(
    rules: Ruleset,
    n_rounds: int = 100_000,
    *,
    strategy: str = "optimal",
    seed: int | None = 42,
    starting_bet: float = FLAT_BET,
    return_payouts: bool = False,
) -> SimulationResult:
    """Simulate `n_rounds` full rounds in this process.

    Each round is dealt from a freshly shuffled shoe of `rules.num_decks`.

    Args:
        rules:          House rules.
        n_rounds:       Number of rounds.
        strategy:       'optimal' (basic strategy) or 'random'.
        seed:           Seed for numpy's Generator; None for a non-deterministic run.
        starting_bet:   Flat stake per round.
        return_payouts: Attach the raw per-round array to the result.

    Returns:
        SimulationResult for the run.
    """
    logger.info("simulating %d rounds (%s strategy)", n_rounds, strategy)
    payouts = _play_batch(rules, n_rounds, strategy, seed, starting_bet)
    return _summarise(payouts, strategy, return_payouts)


def _split_rounds(n_rounds: int, n_workers: int) -> list[int]:
    """Spread rounds over workers as evenly as possible.

    Examples:
        >>> _split_rounds(10, 3)
        [4, 3, 3]
    """
    base, extra = divmod(n_rounds, n_workers)
    return [base + (1 if i < extra else 0) for i in range(n_workers)]


def _run_jobs(pool, jobs: list[tuple]) -> list[np.ndarray]:
    if pool is None:
        return [_play_batch(*job) for job in jobs]
    return pool.starmap(_play_batch, jobs)


def simulate_rounds_parallel(
    rules: Ruleset,
    n_rounds: int = 100_000,
    n_workers: int = DEFAULT_WORKERS,
    *,
    strategy: str = "optimal",
    seed: int | None = 42,
    starting_bet: float = FLAT_BET,
    return_payouts: bool = False,
) -> SimulationResult:
    """Simulate `n_rounds` rounds spread across `n_workers` processes.

    Worker streams are spawned from `SeedSequence(seed)`, so the merged
    result depends only on the seed and worker count.
    """
    if n_workers < 1:
        raise ValueError(f"n_workers must be at least 1, got {n_workers}")
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy {strategy!r}; expected one of {STRATEGIES}")

    streams = np.random.SeedSequence(seed).spawn(n_workers)
    jobs = [
        (rules, count, strategy, stream, starting_bet)
        for count, stream in zip(_split_rounds(n_rounds, n_workers), streams)
    ]
    logger.info("simulating %d rounds on %d workers (%s strategy)", n_rounds, n_workers, strategy)

    if n_workers > 1:
        with Pool(processes=n_workers) as pool:
            results = _run_jobs(pool, jobs)
    else:
        results = _run_jobs(None, jobs)
    return _summarise(np.concatenate(results), strategy, return_payouts)


def run_timed_simulation(
    rules: Ruleset,
    duration_s: float = 5.0,
    on_update: Callable[[dict[int, int], int], None] | None = None,
    *,
    n_workers: int = DEFAULT_WORKERS,
    batch_size: int = BATCH_SIZE,
    strategy: str = "optimal",
    seed: int | None = None,
    starting_bet: float = FLAT_BET,
) -> SimulationResult:
    """Simulate in parallel batches until `duration_s` seconds have passed.

    Stopping is cooperative: the deadline is checked between batches, so at
    least one batch always runs and no round is cut short.

    Args:
        rules:        House rules.
        duration_s:   Wall-clock budget in seconds.
        on_update:    Called after every batch with the running
                      {net_cents: count} histogram and total rounds so far.
        n_workers:    Worker processes; 1 runs in-process.
        batch_size:   Rounds per worker per batch.
        strategy:     'optimal' or 'random'.
        seed:         Root seed for every worker stream.
        starting_bet: Flat stake per round.

    Returns:
        SimulationResult over every round played.
    """
    if n_workers < 1:
        raise ValueError(f"n_workers must be at least 1, got {n_workers}")
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy {strategy!r}; expected one of {STRATEGIES}")

    root = np.random.SeedSequence(seed)
    chunks: list[np.ndarray] = []
    histogram: dict[int, int] = {}
    n_played = 0
    deadline = time.monotonic() + duration_s

    pool = Pool(processes=n_workers) if n_workers > 1 else None
    try:
        batch = 0
        while True:
            jobs = [(rules, batch_size, strategy, stream, starting_bet) for stream in root.spawn(n_workers)]
            for nets in _run_jobs(pool, jobs):
                chunks.append(nets)
                histogram = merge_distributions(histogram, distribution_from_payouts(nets))
                n_played += len(nets)
            batch += 1
            logger.info("batch %d done: %d rounds so far", batch, n_played)
            if on_update is not None:
                on_update(histogram, n_played)
            if time.monotonic() >= deadline:
                break
    finally:
        if pool is not None:
            pool.close()
            pool.join()

    return _summarise(np.concatenate(chunks), strategy, return_payouts=False)


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from blackjack.engine.ruleset import TABLE_RULES

    print("Blackjack Monte Carlo: 20,000 rounds per strategy\n")
    for name in STRATEGIES:
        print(f"{name:>8}: {simulate_rounds_parallel(TABLE_RULES, 20_000, strategy=name)}")

    print("\nDealer final totals by upcard (100,000 hands each):")
    for upcard, hist in simulate_all_upcards(100_000, seed=42).items():
        bust_pct = sum(c for t, c in hist.items() if t > 21) / 1_000
        print(f"  upcard {'A' if upcard == 1 else upcard:>2}: bust {bust_pct:5.2f}%")

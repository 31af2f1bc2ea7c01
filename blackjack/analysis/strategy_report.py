"""Text reports for basic strategy, dealer outcomes and earnings.

Three public functions format tables for terminal inspection. Each prints
the report and returns it as a string.

    format_strategy_chart()                  hard / soft / pair tables
    format_dealer_outcome_report(histograms) dealer final totals per upcard
    format_distribution(hist, n_rounds)      net earnings distribution
"""

from __future__ import annotations

from typing import Callable

from blackjack.analysis.heat_maps import DEALER_UPCARDS, OUTCOME_LABELS, build_dealer_outcome_matrix, table_row_labels
from blackjack.solvers.basic_strategy import HARD_TABLE, PAIR_TABLE, SOFT_TABLE, STRATEGY_LABELS, UPCARD_LABELS

_TABLE_TITLES: list[tuple[str, dict]] = [
    ("Hard totals", HARD_TABLE),
    ("Soft totals", SOFT_TABLE),
    ("Pairs", PAIR_TABLE),
]


# ─── Public report functions ──────────────────────────────────────────────────

def format_strategy_chart() -> str:
    """Print the three basic-strategy tables with a code legend."""
    lines: list[str] = []
    header = f"  {'':>6} " + " ".join(f"{u:>3}" for u in UPCARD_LABELS)
    for title, table in _TABLE_TITLES:
        lines += ["=" * 56, f"Basic Strategy: {title}", "=" * 56, header]
        for key, label in zip(sorted(table), table_row_labels(table)):
            cells = " ".join(f"{code.value:>3}" for code in table[key])
            lines.append(f"  {label:>6} {cells}")
        lines.append("")

    lines.append("Legend:")
    for code, text in STRATEGY_LABELS.items():
        lines.append(f"  {code.value:>2} = {text}")
    lines.append("")
    report = "\n".join(lines)
    print(report)
    return report


def format_dealer_outcome_report(histograms: dict[int, dict[int, int]]) -> str:
    """Print the dealer's final-total percentages for each upcard.

    Args:
        histograms: {upcard (1 = Ace): {final_total: count}}.
    """
    matrix = build_dealer_outcome_matrix(histograms) * 100.0
    lines = [
        "=" * 64,
        "Dealer Final Totals by Upcard (%)",
        "=" * 64,
        f"  {'Up':>3}  " + "  ".join(f"{label:>6}" for label in OUTCOME_LABELS) + f"  {'Hands':>9}",
    ]
    for r, (upcard, label) in enumerate(zip(DEALER_UPCARDS, UPCARD_LABELS)):
        n = sum(histograms.get(upcard, {}).values())
        if n == 0:
            continue
        cells = "  ".join(f"{v:>6.2f}" for v in matrix[r])
        lines.append(f"  {label:>3}  {cells}  {n:>9,}")
    lines.append("")
    report = "\n".join(lines)
    print(report)
    return report


def _signed_dollars(cents: int) -> str:
    """Examples:
        >>> _signed_dollars(150), _signed_dollars(-200), _signed_dollars(0)
        ('+$1.50', '-$2.00', '$0')
    """
    if cents > 0:
        return f"+${cents / 100:.2f}"
    if cents < 0:
        return f"-${abs(cents) / 100:.2f}"
    return "$0"


def format_distribution(
    histogram: dict[int, int],
    n_rounds: int,
    *,
    paint: Callable[[str, int], str] | None = None,
) -> str:
    """Print the loss/earnings distribution, one line per net amount.

    Args:
        histogram: {net_cents: count}.
        n_rounds:  Total rounds, the denominator for percentages.
        paint:     Optional styling hook called as paint(label, cents),
                   e.g. to colour wins and losses in a terminal.
    """
    lines = ["Loss/earnings distribution:"]
    for cents in sorted(histogram):
        count = histogram[cents]
        percent = count / n_rounds * 100 if n_rounds else 0.0
        label = _signed_dollars(cents)
        if paint is not None:
            label = paint(label, cents)
        lines.append(f"{label}: {percent:.2f}% ({count:,})")
    report = "\n".join(lines)
    print(report)
    return report


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from blackjack.analysis.simulator import simulate_all_upcards

    format_strategy_chart()
    format_dealer_outcome_report(simulate_all_upcards(100_000, seed=42))

"""Strategy heat maps and dealer outcome charts.

Data builders return NumPy matrices usable programmatically or by the plot
helpers (and by the Plotly lookup):

    build_strategy_matrix(table)           code-index matrix for one table
    table_row_labels(table)                row labels matching the matrix
    build_dealer_outcome_matrix(hists)     (10, 6) final-total fractions

Plot functions render matplotlib figures:

    plot_strategy_heatmaps(...)            1×3 figure (hard, soft, pairs)
    plot_dealer_outcomes(hists, ...)       stacked bar of dealer final totals

Matrix convention (strategy):
    Shape  : (n_rows, 10), cols = dealer upcard [2 … 10, A]
    Values : index into CODE_ORDER
"""

from __future__ import annotations

import matplotlib
import matplotlib.colors
import matplotlib.figure
import matplotlib.patches
import matplotlib.pyplot as plt
import numpy as np

from blackjack.solvers.basic_strategy import (
    HARD_TABLE,
    PAIR_TABLE,
    SOFT_TABLE,
    UPCARD_LABELS,
    Strategy,
)

# ─── Constants ────────────────────────────────────────────────────────────────

CODE_ORDER: list[Strategy] = [
    Strategy.HIT,
    Strategy.STAND,
    Strategy.DOUBLE_OR_HIT,
    Strategy.DOUBLE_OR_STAND,
    Strategy.SPLIT,
    Strategy.SPLIT_IF_DAS_OR_HIT,
    Strategy.SURRENDER_OR_HIT,
]

CODE_COLORS: dict[Strategy, str] = {
    Strategy.HIT: "#d62728",
    Strategy.STAND: "#2ca02c",
    Strategy.DOUBLE_OR_HIT: "#1f77b4",
    Strategy.DOUBLE_OR_STAND: "#17becf",
    Strategy.SPLIT: "#ff7f0e",
    Strategy.SPLIT_IF_DAS_OR_HIT: "#ffbb78",
    Strategy.SURRENDER_OR_HIT: "#7f7f7f",
}

# Upcards in column order; 1 = Ace.
DEALER_UPCARDS: list[int] = [2, 3, 4, 5, 6, 7, 8, 9, 10, 1]
OUTCOME_LABELS: list[str] = ["17", "18", "19", "20", "21", "Bust"]
_OUTCOME_COLORS: list[str] = ["#c6dbef", "#9ecae1", "#6baed6", "#3182bd", "#08519c", "#d62728"]


def _make_code_cmap() -> matplotlib.colors.ListedColormap:
    return matplotlib.colors.ListedColormap([CODE_COLORS[code] for code in CODE_ORDER])


_CODE_CMAP: matplotlib.colors.ListedColormap = _make_code_cmap()


# ─── Data builders ────────────────────────────────────────────────────────────


def build_strategy_matrix(table: dict[int, tuple[Strategy, ...]]) -> np.ndarray:
    """Return the table as a (n_rows, 10) int matrix of CODE_ORDER indices.

    Rows follow the table's keys in ascending order.

    Examples:
        >>> build_strategy_matrix(SOFT_TABLE).shape
        (9, 10)
    """
    return np.array(
        [[CODE_ORDER.index(code) for code in table[key]] for key in sorted(table)],
        dtype=np.int64,
    )


def table_row_labels(table: dict[int, tuple[Strategy, ...]]) -> list[str]:
    """Human-readable row labels: totals, or pair ranks for the pair table.

    Examples:
        >>> table_row_labels(PAIR_TABLE)[-2:]
        ['10,10', 'A,A']
    """
    if table is PAIR_TABLE:
        return [("A" if key == 11 else str(key)) + "," + ("A" if key == 11 else str(key)) for key in sorted(table)]
    if table is SOFT_TABLE:
        return [f"A,{key - 11}" if key > 12 else "A,A" for key in sorted(table)]
    return [str(key) for key in sorted(table)]


def build_dealer_outcome_matrix(histograms: dict[int, dict[int, int]]) -> np.ndarray:
    """Fractions of dealer final totals per upcard.

    Args:
        histograms: {upcard (1 = Ace): {final_total: count}}, as returned by
                    simulate_all_upcards().

    Returns:
        (10, 6) float64 array. Rows follow DEALER_UPCARDS, cols OUTCOME_LABELS.
        Rows with no samples stay at zero.
    """
    matrix = np.zeros((len(DEALER_UPCARDS), len(OUTCOME_LABELS)), dtype=np.float64)
    for r, upcard in enumerate(DEALER_UPCARDS):
        hist = histograms.get(upcard, {})
        n = sum(hist.values())
        if n == 0:
            continue
        for total, count in hist.items():
            c = 5 if total > 21 else total - 17
            matrix[r, c] += count / n
    return matrix


# ─── Rendering helper ─────────────────────────────────────────────────────────


def _render_panel(
    ax: matplotlib.axes.Axes,
    data: np.ndarray,
    row_labels: list[str],
) -> matplotlib.image.AxesImage:
    """Render one strategy panel onto *ax* with code annotations.

    The caller is responsible for title and axis labels.
    """
    im = ax.imshow(data, cmap=_CODE_CMAP, vmin=-0.5, vmax=len(CODE_ORDER) - 0.5, aspect="auto")

    ax.set_xticks(range(len(UPCARD_LABELS)))
    ax.set_xticklabels(UPCARD_LABELS, fontsize=9)
    ax.set_yticks(range(len(row_labels)))
    ax.set_yticklabels(row_labels, fontsize=9)

    for r in range(data.shape[0]):
        for c in range(data.shape[1]):
            ax.text(
                c,
                r,
                CODE_ORDER[int(data[r, c])].value,
                ha="center",
                va="center",
                fontsize=8,
                color="white",
                fontweight="bold",
            )
    return im


# ─── Public plot functions ────────────────────────────────────────────────────


def plot_strategy_heatmaps(
    title: str = "Basic Strategy",
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot the hard, soft and pair tables as a 1×3 figure.

    Args:
        title:     Figure suptitle.
        show:      If True, call plt.show() after rendering.
        save_path: If not None, save the figure to this path before showing.

    Returns:
        matplotlib.figure.Figure.
    """
    fig, axes = plt.subplots(1, 3, figsize=(16, 7))
    fig.suptitle(title, fontsize=13, fontweight="bold")

    panels = [
        (HARD_TABLE, "Hard totals", "Player total"),
        (SOFT_TABLE, "Soft totals", "Player hand"),
        (PAIR_TABLE, "Pairs", "Player pair"),
    ]
    for ax, (table, panel_title, ylabel) in zip(axes, panels):
        _render_panel(ax, build_strategy_matrix(table), table_row_labels(table))
        ax.set_title(panel_title, fontsize=10)
        ax.set_xlabel("Dealer upcard", fontsize=9)
        ax.set_ylabel(ylabel, fontsize=9)

    handles = [
        matplotlib.patches.Patch(color=CODE_COLORS[code], label=f"{code.value} = {code.name.replace('_', ' ').lower()}")
        for code in CODE_ORDER
    ]
    fig.legend(handles=handles, loc="lower center", ncol=4, fontsize=8, frameon=False)
    plt.tight_layout(rect=(0, 0.08, 1, 1))

    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()

    return fig


def plot_dealer_outcomes(
    histograms: dict[int, dict[int, int]],
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Stacked bar chart of dealer final totals (and bust) per upcard.

    Args:
        histograms: {upcard: {final_total: count}} from simulate_all_upcards().
        show:       If True, call plt.show().
        save_path:  If not None, save to path.

    Returns:
        matplotlib.figure.Figure.
    """
    matrix = build_dealer_outcome_matrix(histograms) * 100.0
    x = np.arange(len(DEALER_UPCARDS))

    fig, ax = plt.subplots(figsize=(10, 5))
    bottom = np.zeros(len(DEALER_UPCARDS))
    for c, (label, color) in enumerate(zip(OUTCOME_LABELS, _OUTCOME_COLORS)):
        ax.bar(x, matrix[:, c], bottom=bottom, color=color, label=label, width=0.7)
        bottom += matrix[:, c]

    ax.set_xticks(x)
    ax.set_xticklabels(UPCARD_LABELS)
    ax.set_xlabel("Dealer upcard", fontsize=9)
    ax.set_ylabel("Share of hands (%)", fontsize=9)
    ax.set_title("Dealer final totals by upcard", fontsize=12, fontweight="bold")
    ax.set_ylim(0, 100)
    ax.legend(title="Final", bbox_to_anchor=(1.01, 1), loc="upper left", fontsize=8)
    plt.tight_layout()

    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()

    return fig


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    from blackjack.analysis.simulator import simulate_all_upcards

    iterations = int(sys.argv[1]) if len(sys.argv) > 1 else 100_000
    print("Generating strategy heat maps …")
    plot_strategy_heatmaps(show=False, save_path="basic_strategy.png")
    print(f"Simulating dealer outcomes ({iterations:,} per upcard) …")
    plot_dealer_outcomes(simulate_all_upcards(iterations, seed=42), show=False, save_path="dealer_outcomes.png")
    print("Saved: basic_strategy.png, dealer_outcomes.png")

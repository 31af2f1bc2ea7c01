"""Tests for blackjack/analysis/strategy_report.py — text reports.

Each report function prints its output and returns the same text; tests
check both and the content of key rows.
"""

from __future__ import annotations

import pytest

from blackjack.analysis.simulator import simulate_all_upcards
from blackjack.analysis.strategy_report import (
    _signed_dollars,
    format_dealer_outcome_report,
    format_distribution,
    format_strategy_chart,
)


@pytest.fixture(scope="module")
def histograms() -> dict[int, dict[int, int]]:
    return simulate_all_upcards(300, seed=0)


# ─── format_strategy_chart ────────────────────────────────────────────────────


class TestFormatStrategyChart:
    def test_prints_and_returns(self, capsys: pytest.CaptureFixture) -> None:
        report = format_strategy_chart()
        assert report in capsys.readouterr().out

    def test_sections(self) -> None:
        report = format_strategy_chart()
        for title in ("Hard totals", "Soft totals", "Pairs"):
            assert f"Basic Strategy: {title}" in report
        assert "Legend:" in report

    def test_hard_16_row(self) -> None:
        row = next(line for line in format_strategy_chart().splitlines() if line.split()[:1] == ["16"])
        assert row.split()[1:] == ["S", "S", "S", "S", "S", "H", "H", "RH", "RH", "RH"]

    def test_pair_of_aces_row(self) -> None:
        assert any(line.split()[:1] == ["A,A"] for line in format_strategy_chart().splitlines())


# ─── format_dealer_outcome_report ─────────────────────────────────────────────


class TestFormatDealerOutcomeReport:
    def test_prints_and_returns(self, histograms, capsys: pytest.CaptureFixture) -> None:
        report = format_dealer_outcome_report(histograms)
        assert report in capsys.readouterr().out
        assert "Dealer Final Totals by Upcard" in report

    def test_one_row_per_upcard(self, histograms) -> None:
        report = format_dealer_outcome_report(histograms)
        rows = [line for line in report.splitlines() if line.strip().endswith("300")]
        assert len(rows) == 10

    def test_skips_empty_upcards(self) -> None:
        report = format_dealer_outcome_report({6: {17: 1, 22: 1}})
        rows = [line for line in report.splitlines() if line.split()[:1] == ["6"]]
        assert len(rows) == 1
        assert "50.00" in rows[0]
        assert not any(line.split()[:1] == ["A"] for line in report.splitlines())


# ─── format_distribution ──────────────────────────────────────────────────────


class TestFormatDistribution:
    def test_signed_dollars(self) -> None:
        assert _signed_dollars(150) == "+$1.50"
        assert _signed_dollars(-200) == "-$2.00"
        assert _signed_dollars(0) == "$0"

    def test_lines(self, capsys: pytest.CaptureFixture) -> None:
        report = format_distribution({150: 1, -100: 3, 0: 1}, 5)
        assert report in capsys.readouterr().out
        assert report.splitlines() == [
            "Loss/earnings distribution:",
            "-$1.00: 60.00% (3)",
            "$0: 20.00% (1)",
            "+$1.50: 20.00% (1)",
        ]

    def test_paint_hook(self) -> None:
        report = format_distribution({-100: 1, 100: 1}, 2, paint=lambda label, cents: f"<{cents}>{label}")
        assert "<-100>-$1.00: 50.00% (1)" in report
        assert "<100>+$1.00: 50.00% (1)" in report

    def test_zero_rounds(self) -> None:
        assert format_distribution({}, 0) == "Loss/earnings distribution:"

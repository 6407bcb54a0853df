"""Tests for summary metrics and scenario comparison."""

from datetime import date

import pytest

from feasibility.calculations.cashflow import MonthlyCashflow, build_scenario_cashflows
from feasibility.calculations.metrics import (
    RiskLevel,
    ScenarioSummary,
    approximate_irr,
    assess_risk,
    benchmark_kpis,
    compare_summaries,
    format_comparison_table,
    payback_period,
    solve_irr,
    summarize,
)
from feasibility.models.scenario import get_scenario_multipliers


def rows_from_net(net_cashflows):
    """Minimal series carrying only net cashflow and balance."""
    rows = []
    balance = 0.0
    for i, cf in enumerate(net_cashflows):
        balance += cf
        rows.append(MonthlyCashflow(
            period=i, label=f"P{i}", period_start=date(2025, 1, 1),
            net_cashflow=cf, cash_balance=balance,
        ))
    return rows


class TestSummarize:
    """Tests for summarize on the reference project."""

    def test_reference_totals(self, reference_inputs):
        summary = summarize(build_scenario_cashflows(reference_inputs))

        assert summary.total_revenue == pytest.approx(15_000_000)
        # 10M construction + 960k bullet interest
        assert summary.total_costs == pytest.approx(10_960_000)
        assert summary.net_profit == pytest.approx(4_040_000)

    def test_profit_margin_on_gross_revenue(self, reference_inputs):
        summary = summarize(build_scenario_cashflows(reference_inputs))

        assert summary.profit_margin == pytest.approx(4_040_000 / 15_000_000 * 100)

    def test_roi_on_equity(self, reference_inputs):
        summary = summarize(build_scenario_cashflows(reference_inputs))

        assert summary.roi == pytest.approx(4_040_000 / 4_000_000 * 100)

    def test_final_balance_matches_last_row(self, reference_inputs):
        series = build_scenario_cashflows(reference_inputs)

        assert summarize(series).final_cash_balance == series[-1].cash_balance

    def test_empty_series(self):
        assert summarize([]) == ScenarioSummary()

    def test_zero_revenue_and_equity_guards(self):
        summary = summarize(rows_from_net([0.0, 0.0]))

        assert summary.profit_margin == 0
        assert summary.roi == 0


class TestApproximateIrr:
    """The legacy IRR is a ratio approximation, not a root solve.

    These tests pin the approximation's formula so its output ranges do not
    shift silently.
    """

    def test_approximation_formula(self):
        # 100 out, 121 back over 24 months -> (1.21)^(1/2) - 1 = 10%
        flows = [-100.0] + [0.0] * 22 + [121.0]

        assert approximate_irr(flows) == pytest.approx(10.0)

    def test_approximation_ignores_timing(self):
        early = [-100.0, 121.0] + [0.0] * 22
        late = [-100.0] + [0.0] * 22 + [121.0]

        assert approximate_irr(early) == approximate_irr(late)

    def test_no_outflows_is_zero(self):
        assert approximate_irr([10.0, 20.0]) == 0
        assert approximate_irr([]) == 0


class TestSolvedIrr:
    """Tests for the numpy-financial IRR."""

    def test_annualizes_monthly_rate(self):
        flows = [-100.0, 101.0]

        assert solve_irr(flows) == pytest.approx((1.01 ** 12 - 1) * 100)

    def test_differs_from_approximation_on_early_returns(self):
        early = [-100.0, 121.0] + [0.0] * 22

        assert solve_irr(early) > approximate_irr(early)

    def test_no_sign_change_is_none(self):
        assert solve_irr([10.0, 20.0]) is None
        assert solve_irr([-10.0, -20.0]) is None
        assert solve_irr([]) is None


class TestPaybackPeriod:
    """Tests for break-even period."""

    def test_first_non_negative_cumulative(self):
        assert payback_period([-100, 40, 40, 40, 40]) == 4

    def test_never_reached_returns_length(self):
        assert payback_period([-100, 10, 10]) == 3

    def test_stable_when_periods_appended_after_break_even(self):
        flows = [-100.0, 30.0, 30.0, 50.0, 20.0]
        before = payback_period(flows)

        assert payback_period(flows + [10.0, 25.0, 40.0]) == before

    def test_immediately_non_negative(self):
        assert payback_period([0.0, -10.0]) == 1


class TestCompareAndRisk:
    """Tests for comparison, risk assessment and table output."""

    def test_compare_summaries(self, reference_inputs):
        base = summarize(build_scenario_cashflows(reference_inputs))
        optimistic = summarize(
            build_scenario_cashflows(reference_inputs, get_scenario_multipliers("optimistic"))
        )
        delta = compare_summaries(base, optimistic)

        assert delta.revenue == pytest.approx(2_250_000)
        assert delta.net_profit > 0

    def test_high_risk_on_low_irr(self):
        assessment = assess_risk(ScenarioSummary(irr=5.0, profit_margin=30.0, roi=50.0))

        assert assessment.level == RiskLevel.HIGH
        assert any("IRR" in flag for flag in assessment.flags)

    def test_medium_risk(self):
        assessment = assess_risk(ScenarioSummary(irr=30.0, profit_margin=20.0, roi=50.0))

        assert assessment.level == RiskLevel.MEDIUM

    def test_low_risk(self):
        assessment = assess_risk(ScenarioSummary(irr=30.0, profit_margin=30.0, roi=50.0))

        assert assessment.level == RiskLevel.LOW
        assert assessment.flags == []

    def test_format_comparison_table(self, reference_inputs):
        summary = summarize(build_scenario_cashflows(reference_inputs))
        table = format_comparison_table({"base": summary, "optimistic": summary})

        assert "SCENARIO COMPARISON" in table
        assert "Base" in table and "Optimistic" in table
        assert "IRR (approx.)" in table
        assert "15,000,000" in table


class TestBenchmarks:
    def test_grades(self):
        grades = benchmark_kpis(ScenarioSummary(irr=26.0, roi=30.0, profit_margin=10.0))

        assert grades == {"irr": "excellent", "roi": "good", "profit_margin": "below target"}

    def test_boundaries_are_inclusive(self):
        grades = benchmark_kpis(ScenarioSummary(irr=20.0, roi=40.0, profit_margin=25.0))

        assert grades == {"irr": "good", "roi": "excellent", "profit_margin": "good"}

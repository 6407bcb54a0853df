"""Tests for input models, scenario multipliers and regional lookups."""

from datetime import date, datetime

import pytest

from feasibility.models.inputs import (
    FeasibilityInputs,
    LoanFacility,
    parse_bool,
    parse_date,
    safe_number,
)
from feasibility.models.lookups import RepaymentStyle, get_regional_rates
from feasibility.models.scenario import (
    IDENTITY_MULTIPLIERS,
    ScenarioName,
    get_scenario_multipliers,
)


class TestSafeNumber:
    @pytest.mark.parametrize("value,expected", [
        (12, 12.0),
        ("3.5", 3.5),
        (None, 0.0),
        ("abc", 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (True, 1.0),
    ])
    def test_coercion(self, value, expected):
        assert safe_number(value) == expected

    def test_custom_default(self):
        assert safe_number(None, default=7.0) == 7.0


class TestParseDate:
    def test_iso_day(self):
        assert parse_date("2025-03-15") == date(2025, 3, 15)

    def test_iso_month(self):
        assert parse_date("2025-03") == date(2025, 3, 1)

    def test_datetime(self):
        assert parse_date(datetime(2025, 3, 15, 10, 30)) == date(2025, 3, 15)

    def test_unparseable(self):
        assert parse_date("next spring") is None
        assert parse_date(20250315) is None


class TestParseBool:
    @pytest.mark.parametrize("value,expected", [
        (True, True),
        (0, False),
        ("false", False),
        ("False", False),
        ("no", False),
        ("0", False),
        ("true", True),
        ("Yes", True),
        (None, False),
    ])
    def test_flags(self, value, expected):
        assert parse_bool(value) is expected

    def test_from_dict_reads_string_flags(self):
        inputs = FeasibilityInputs.from_dict({
            "phasing_enabled": "false",
            "escrow_required": "true",
            "zakat_applicable": "0",
            "vat_applicable": "yes",
        })

        assert inputs.phasing_enabled is False
        assert inputs.escrow_required is True
        assert inputs.zakat_applicable is False
        assert inputs.vat_applicable is True


class TestFeasibilityInputs:
    def test_clean_inputs_have_no_warnings(self, reference_inputs):
        assert reference_inputs.validate() == []

    def test_negative_cost_warns(self):
        warnings = FeasibilityInputs(construction_cost=-1).validate()

        assert any("construction_cost" in w for w in warnings)

    def test_dates_out_of_order_warn(self):
        inputs = FeasibilityInputs(start_date=date(2026, 1, 1), completion_date=date(2025, 1, 1))

        assert any("precedes" in w for w in inputs.validate())

    def test_rate_out_of_range_warns(self):
        warnings = FeasibilityInputs(vat_rate=5).validate()

        assert any("vat_rate" in w for w in warnings)

    def test_segment_shares_must_sum_to_one(self):
        inputs = FeasibilityInputs(residential_share=0.5, retail_share=0.2)

        assert any("segment shares" in w for w in inputs.validate())

    def test_totals(self, phased_inputs):
        assert phased_inputs.total_revenue == 15_000_000
        assert phased_inputs.total_cost == 13_500_000

    def test_dict_round_trip(self, reference_inputs):
        assert FeasibilityInputs.from_dict(reference_inputs.to_dict()) == reference_inputs

    def test_from_dict_tolerates_bad_values(self):
        inputs = FeasibilityInputs.from_dict({
            "construction_cost": "n/a",
            "start_date": "soon",
            "loan": {"principal": "1000", "repayment_style": "equal", "term_periods": 12.7},
            "unexpected": 1,
        })

        assert inputs.construction_cost == 0.0
        assert inputs.start_date is None
        assert inputs.loan.principal == 1000.0
        assert inputs.loan.repayment_style == RepaymentStyle.EQUAL_INSTALLMENT
        assert inputs.loan.term_periods == 12

    def test_from_none(self):
        assert FeasibilityInputs.from_dict(None) == FeasibilityInputs()

    def test_copy_has_independent_loan(self, reference_inputs):
        clone = reference_inputs.copy()
        clone.loan.principal = 1

        assert reference_inputs.loan.principal == 6_000_000

    def test_with_regional_rates(self, reference_inputs):
        ksa = reference_inputs.with_regional_rates("ksa")

        assert ksa.vat_rate == 0.15
        assert ksa.zakat_rate == 0.025
        assert reference_inputs.vat_rate == 0.0


class TestLoanFacility:
    def test_monthly_rate(self):
        assert LoanFacility(annual_rate=0.12).monthly_rate == pytest.approx(0.01)

    def test_unknown_style_defaults_to_bullet(self):
        assert LoanFacility.from_dict({"repayment_style": "balloon"}).repayment_style == RepaymentStyle.BULLET


class TestScenarioMultipliers:
    def test_named_lookup(self):
        optimistic = get_scenario_multipliers("optimistic")

        assert optimistic.construction_cost_multiplier == 0.9
        assert optimistic.sale_price_multiplier == 1.15

    def test_enum_lookup(self):
        assert get_scenario_multipliers(ScenarioName.PESSIMISTIC).sale_price_multiplier == 0.9

    def test_unknown_falls_back_to_identity(self):
        assert get_scenario_multipliers("stress") == IDENTITY_MULTIPLIERS


class TestRegionalRates:
    def test_known_region(self):
        assert get_regional_rates("KSA").currency == "SAR"

    def test_unknown_region_falls_back_to_uae(self):
        assert get_regional_rates("XX").vat_rate == 0.05

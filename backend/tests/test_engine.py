"""
Unit tests for engine.py (run_valuation)
"""

import pytest

from applebites.services.valuation import FOUR_POINT, VALUE_DRIVER_KEYS, Tier, run_valuation


ALL_C = {key: "C" for key in VALUE_DRIVER_KEYS}


def test_reference_financials():
    result = run_valuation(
        {
            "netIncome": "100000",
            "interest": "5000",
            "taxes": "20000",
            "depreciation": "10000",
            "amortization": "0",
            "ownerSalary": "50000",
        },
        ALL_C,
    )
    assert result.base_ebitda == 135000.0
    assert result.total_adjustments == 50000.0
    assert result.adjusted_ebitda == 185000.0
    assert result.overall_score == "C"


def test_grade_c_range():
    result = run_valuation({"net_income": 315000}, ALL_C)
    assert result.valuation_multiple == 3.5
    assert result.estimates.low == 787500.0
    assert result.estimates.mid == 1102500.0
    assert result.estimates.high == 1417500.0


def test_missing_drivers_treated_as_c():
    result = run_valuation({"net_income": 315000}, None)
    assert result.overall_score == "C"
    assert result.estimates.mid == 1102500.0


@pytest.mark.parametrize("grade, multiples", [("A", (4.0, 5.0, 6.0)), ("F", (1.5, 2.5, 3.5))])
def test_uniform_grades(grade, multiples):
    result = run_valuation({"net_income": 100000}, {key: grade for key in VALUE_DRIVER_KEYS})
    assert result.overall_score == grade
    assert (result.estimates.low, result.estimates.mid, result.estimates.high) == tuple(
        100000 * m for m in multiples
    )


def test_range_is_ordered_for_non_negative_ebitda():
    for grade in "ABCDF":
        result = run_valuation({"net_income": 50000}, {key: grade for key in VALUE_DRIVER_KEYS})
        assert result.estimates.low <= result.estimates.mid <= result.estimates.high


def test_blank_inputs_produce_zero_valuation():
    result = run_valuation({"netIncome": "", "interest": "abc"}, {})
    assert result.adjusted_ebitda == 0.0
    assert result.estimates.mid == 0.0


def test_growth_tier_with_naics():
    result = run_valuation(
        {"net_income": 1000000},
        {key: "A" for key in VALUE_DRIVER_KEYS},
        tier=Tier.GROWTH,
        naics_code="238160",
    )
    assert result.selection.source == "naics"
    assert result.valuation_multiple == pytest.approx(11.0)
    assert result.estimates.mid == pytest.approx(11_000_000)


def test_four_point_scale_grade_with_five_point_industry_score():
    drivers = {key: "B" for key in VALUE_DRIVER_KEYS}
    result = run_valuation({"net_income": 100}, drivers, tier="growth", naics_code="238160", scale=FOUR_POINT)
    assert result.overall_score == "B"
    assert result.drivers.average == 3.0
    # industry lookup still sees the five-point average (4.0)
    assert result.valuation_multiple == pytest.approx(8.5)


def test_to_dict_keys():
    data = run_valuation({"net_income": 1}, ALL_C).to_dict()
    assert data["multiple_source"] == "grade_table"
    assert set(data) >= {"low_estimate", "mid_estimate", "high_estimate", "overall_score", "adjusted_ebitda"}

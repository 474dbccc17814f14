"""
Unit tests for normalizer.py

Amount coercion and the EBITDA formulas.
"""

import math

import pytest

from applebites.services.valuation.normalizer import (
    FinancialInputs,
    coerce_amount,
    compute_adjusted_ebitda,
    compute_base_ebitda,
    total_adjustments,
)


# ============================================================================
# coerce_amount
# ============================================================================

@pytest.mark.parametrize(
    "raw, expected",
    [
        ("125000", 125000.0),
        (" $1,250.50", 1250.5),
        ("-500", -500.0),
        ("12abc", 12.0),
        (".5", 0.5),
        ("1e3", 1000.0),
        (42, 42.0),
        (3.25, 3.25),
    ],
)
def test_coerce_amount_reads_numeric_prefix(raw, expected):
    assert coerce_amount(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "n/a", "abc", None, True, [], {}, "nan", float("nan"), float("inf"), 10**400, "1e400"])
def test_coerce_amount_junk_becomes_zero(raw):
    value = coerce_amount(raw)
    assert value == 0.0
    assert not math.isnan(value)


# ============================================================================
# FinancialInputs
# ============================================================================

def test_from_mapping_accepts_camel_and_snake_keys():
    inputs = FinancialInputs.from_mapping({"netIncome": "100", "owner_salary": 50, "taxes": ""})
    assert inputs.net_income == 100.0
    assert inputs.owner_salary == 50.0
    assert inputs.taxes == 0.0
    assert inputs.amortization == 0.0


def test_from_mapping_none_is_all_zero():
    assert FinancialInputs.from_mapping(None) == FinancialInputs()


def test_to_dict_has_all_nine_fields():
    assert len(FinancialInputs().to_dict()) == 9


# ============================================================================
# EBITDA
# ============================================================================

def test_base_and_adjusted_ebitda():
    inputs = FinancialInputs.from_mapping({
        "netIncome": 100000,
        "interest": 5000,
        "taxes": 20000,
        "depreciation": 10000,
        "amortization": 0,
        "ownerSalary": 50000,
    })
    base = compute_base_ebitda(inputs)
    assert base == 135000.0
    assert total_adjustments(inputs) == 50000.0
    assert compute_adjusted_ebitda(base, inputs) == 185000.0


def test_adjusted_ebitda_with_blank_adjustments_equals_base():
    inputs = FinancialInputs.from_mapping({"netIncome": "200000", "ownerSalary": "", "otherAdjustments": "junk"})
    base = compute_base_ebitda(inputs)
    assert compute_adjusted_ebitda(base, inputs) == base == 200000.0


def test_negative_net_income_flows_through():
    inputs = FinancialInputs.from_mapping({"netIncome": "-50000", "depreciation": "10000"})
    assert compute_base_ebitda(inputs) == -40000.0


def test_overflowing_sums_report_zero():
    inputs = FinancialInputs.from_mapping({
        "netIncome": 1e308,
        "interest": 1e308,
        "ownerSalary": -1e308,
        "personalExpenses": -1e308,
    })
    base = compute_base_ebitda(inputs)
    assert base == 0.0
    assert total_adjustments(inputs) == 0.0
    assert compute_adjusted_ebitda(base, inputs) == 0.0
    assert all(math.isfinite(v) for v in (base, total_adjustments(inputs), compute_adjusted_ebitda(base, inputs)))

"""
normalizer.py — EBITDA Normalization and Owner Adjustments

Purpose:
- Coerce raw form values into floats (blank / junk → 0.0, never NaN).
- Compute base EBITDA from the five income-statement line items.
- Apply owner add-backs to produce Adjusted EBITDA.

Formulae:
    base_ebitda     = net_income + interest + taxes + depreciation + amortization
    adjusted_ebitda = base_ebitda + owner_salary + personal_expenses
                      + one_time_expenses + other_adjustments

No caps or sanity bounds: adjustments may exceed base EBITDA or be negative.
A sum that overflows to a non-finite value is reported as 0.0.
"""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from pydantic.alias_generators import to_camel

# Leading numeric prefix, as a browser's parseFloat would read it
_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

EBITDA_FIELDS = ("net_income", "interest", "taxes", "depreciation", "amortization")
ADJUSTMENT_FIELDS = ("owner_salary", "personal_expenses", "one_time_expenses", "other_adjustments")


def coerce_amount(value: Any) -> float:
    """
    Convert a submitted amount to float.

    Examples:
        coerce_amount("125000")     → 125000.0
        coerce_amount(" $1,250.50") → 1250.5
        coerce_amount("12abc")      → 12.0
        coerce_amount("")           → 0.0
        coerce_amount(None)         → 0.0
        coerce_amount("n/a")        → 0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float, Decimal)):
        raw = value
    elif isinstance(value, str):
        text = value.strip().replace(",", "").replace("$", "", 1)
        match = _NUMERIC_PREFIX.match(text.strip())
        if not match:
            return 0.0
        raw = match.group(0)
    else:
        return 0.0

    try:
        number = float(raw)
    except (ValueError, OverflowError):
        return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


@dataclass(frozen=True)
class FinancialInputs:
    """Form-local financial figures; consumed once per valuation."""
    net_income: float = 0.0
    interest: float = 0.0
    taxes: float = 0.0
    depreciation: float = 0.0
    amortization: float = 0.0
    owner_salary: float = 0.0
    personal_expenses: float = 0.0
    one_time_expenses: float = 0.0
    other_adjustments: float = 0.0

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "FinancialInputs":
        """
        Build from a form payload. Accepts snake_case or camelCase keys
        (`net_income` / `netIncome`); values go through `coerce_amount`.
        """
        data = data or {}
        values: Dict[str, float] = {}
        for name in EBITDA_FIELDS + ADJUSTMENT_FIELDS:
            raw = data.get(name)
            if raw is None:
                raw = data.get(to_camel(name))
            values[name] = coerce_amount(raw)
        return cls(**values)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def compute_base_ebitda(inputs: FinancialInputs) -> float:
    return finite_or_zero(
        inputs.net_income
        + inputs.interest
        + inputs.taxes
        + inputs.depreciation
        + inputs.amortization
    )


def total_adjustments(inputs: FinancialInputs) -> float:
    return finite_or_zero(
        inputs.owner_salary
        + inputs.personal_expenses
        + inputs.one_time_expenses
        + inputs.other_adjustments
    )


def compute_adjusted_ebitda(base_ebitda: float, inputs: FinancialInputs) -> float:
    return finite_or_zero(coerce_amount(base_ebitda) + total_adjustments(inputs))

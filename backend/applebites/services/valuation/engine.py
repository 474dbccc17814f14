"""
engine.py — Valuation Pipeline Entrypoint

Purpose:
- Run one assessment payload through the full pipeline:

    FinancialInputs → base EBITDA → Adjusted EBITDA
    value drivers   → overall grade
    grade (+ NAICS) → multiples → low / mid / high estimates

- Pure function: no I/O beyond the (cached) NAICS table read, no shared state.

Outputs (JSON-serializable via `to_dict()`):
{
  "base_ebitda": float,
  "total_adjustments": float,
  "adjusted_ebitda": float,
  "valuation_multiple": float,      # market (mid) multiple
  "low_multiple": float,
  "high_multiple": float,
  "low_estimate": float,
  "mid_estimate": float,
  "high_estimate": float,
  "overall_score": "A" | "B" | "C" | "D" | "F",
  "average_score": float,
  "multiple_source": "grade_table" | "naics" | "sector_default",
}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from applebites.services.valuation.grading import (
    CANONICAL_SCALE,
    FIVE_POINT,
    DriverScore,
    GradingScale,
    score_value_drivers,
)
from applebites.services.valuation.multiples import (
    MultipleSelection,
    Tier,
    ValuationRange,
    calculate_range,
    select_multiples,
)
from applebites.services.valuation.naics import NaicsMultipleTable
from applebites.services.valuation.normalizer import (
    FinancialInputs,
    compute_adjusted_ebitda,
    compute_base_ebitda,
    total_adjustments,
)


@dataclass(frozen=True)
class ValuationResult:
    financials: FinancialInputs
    base_ebitda: float
    total_adjustments: float
    adjusted_ebitda: float
    drivers: DriverScore
    selection: MultipleSelection
    estimates: ValuationRange

    @property
    def valuation_multiple(self) -> float:
        return self.selection.band.mid

    @property
    def overall_score(self) -> str:
        return self.drivers.overall_grade.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_ebitda": self.base_ebitda,
            "total_adjustments": self.total_adjustments,
            "adjusted_ebitda": self.adjusted_ebitda,
            "valuation_multiple": self.valuation_multiple,
            "low_multiple": self.selection.band.low,
            "high_multiple": self.selection.band.high,
            "low_estimate": self.estimates.low,
            "mid_estimate": self.estimates.mid,
            "high_estimate": self.estimates.high,
            "overall_score": self.overall_score,
            "average_score": self.drivers.average,
            "multiple_source": self.selection.source,
        }


def run_valuation(
    financials: Union[FinancialInputs, Mapping[str, Any], None],
    value_drivers: Optional[Mapping[str, Any]],
    tier: Union[Tier, str] = Tier.FREE,
    naics_code: Optional[str] = None,
    scale: GradingScale = CANONICAL_SCALE,
    naics_table: Optional[NaicsMultipleTable] = None,
) -> ValuationResult:
    """
    Compute the valuation for one submission.

    Args:
        financials: FinancialInputs or a raw form mapping (snake or camel keys)
        value_drivers: driver key → grade letter (snake_case keys)
        tier: "free", "growth" or "capital"
        naics_code: industry code; only consulted for paid tiers
        scale: grading scale for the overall grade
        naics_table: override for the industry table (tests)
    """
    if not isinstance(financials, FinancialInputs):
        financials = FinancialInputs.from_mapping(financials)
    tier = Tier(tier)

    base = compute_base_ebitda(financials)
    adjusted = compute_adjusted_ebitda(base, financials)

    drivers = score_value_drivers(value_drivers, scale)
    # Industry interpolation is defined on the five-point scale
    performance_score = drivers.average if scale is FIVE_POINT else FIVE_POINT.average(drivers.grades)

    selection = select_multiples(
        drivers.overall_grade,
        tier=tier,
        naics_code=naics_code,
        performance_score=performance_score,
        table=naics_table,
    )

    return ValuationResult(
        financials=financials,
        base_ebitda=base,
        total_adjustments=total_adjustments(financials),
        adjusted_ebitda=adjusted,
        drivers=drivers,
        selection=selection,
        estimates=calculate_range(adjusted, selection.band),
    )

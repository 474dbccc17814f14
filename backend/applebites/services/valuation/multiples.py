"""
multiples.py — Multiple Selection and Valuation Range

Purpose:
- Map an overall grade (free tier) or grade + NAICS code (paid tiers) to
  conservative / market / optimistic EBITDA multiples.
- Multiply Adjusted EBITDA by each multiple to produce the valuation range.

Free-tier table (conservative / market / optimistic):
    A  4.0 / 5.0 / 6.0
    B  3.5 / 4.5 / 5.5
    C  2.5 / 3.5 / 4.5
    D  2.0 / 3.0 / 4.0
    F  1.5 / 2.5 / 3.5

Paid tiers with a NAICS code take the industry multiple as the market
multiple and spread it 0.8x / 1.2x for the conservative and optimistic ends.

No rounding is applied here; presentation layers format currency.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from applebites.services.valuation.grading import Grade
from applebites.services.valuation.naics import NaicsMultipleTable, load_default_table, normalize_naics_code
from applebites.services.valuation.normalizer import finite_or_zero


class Tier(str, Enum):
    FREE = "free"
    GROWTH = "growth"
    CAPITAL = "capital"

    @property
    def is_paid(self) -> bool:
        return self is not Tier.FREE

    @property
    def report_tier(self) -> str:
        return "paid" if self.is_paid else "free"


@dataclass(frozen=True)
class MultipleBand:
    low: float
    mid: float
    high: float

    def as_dict(self) -> Dict[str, float]:
        return {"conservative": self.low, "market": self.mid, "optimistic": self.high}


FREE_TIER_MULTIPLES: Dict[Grade, MultipleBand] = {
    Grade.A: MultipleBand(4.0, 5.0, 6.0),
    Grade.B: MultipleBand(3.5, 4.5, 5.5),
    Grade.C: MultipleBand(2.5, 3.5, 4.5),
    Grade.D: MultipleBand(2.0, 3.0, 4.0),
    Grade.F: MultipleBand(1.5, 2.5, 3.5),
}

PAID_LOW_SPREAD = 0.8
PAID_HIGH_SPREAD = 1.2


@dataclass(frozen=True)
class MultipleSelection:
    band: MultipleBand
    source: str  # "grade_table" | "naics" | "sector_default"
    industry: Optional[str] = None


@dataclass(frozen=True)
class ValuationRange:
    low: float
    mid: float
    high: float


def select_multiples(
    grade: Grade,
    tier: Tier = Tier.FREE,
    naics_code: Optional[str] = None,
    performance_score: Optional[float] = None,
    table: Optional[NaicsMultipleTable] = None,
) -> MultipleSelection:
    """
    Pick the multiple band for an assessment.

    `performance_score` is the five-point average and is only used for the
    industry lookup; without it (or without a NAICS code containing digits,
    or on the free tier) the grade table applies.
    """
    code = normalize_naics_code(naics_code)
    if tier.is_paid and code and performance_score is not None:
        table = table or load_default_table()
        found = table.lookup(code, performance_score)
        mid = found.multiple
        band = MultipleBand(mid * PAID_LOW_SPREAD, mid, mid * PAID_HIGH_SPREAD)
        return MultipleSelection(band=band, source=found.source, industry=found.industry)

    return MultipleSelection(band=FREE_TIER_MULTIPLES[grade], source="grade_table")


def calculate_range(adjusted_ebitda: float, band: MultipleBand) -> ValuationRange:
    """
    Example:
        calculate_range(315000, MultipleBand(2.5, 3.5, 4.5))
        → ValuationRange(787500.0, 1102500.0, 1417500.0)
    """
    return ValuationRange(
        low=finite_or_zero(adjusted_ebitda * band.low),
        mid=finite_or_zero(adjusted_ebitda * band.mid),
        high=finite_or_zero(adjusted_ebitda * band.high),
    )

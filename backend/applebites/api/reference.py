"""
reference.py — Read-only Reference Data Endpoints

- GET /grades: grading scales, driver list and free-tier multiple table
  (the results page and calculator render from this).
- GET /industries/{naics_code}/multiples: NAICS multiple ranges, plus the
  interpolated multiple when a `score` is given.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query

from applebites.api.schemas import IndustryMultipleOut
from applebites.core.logging import get_logger
from applebites.services.valuation.grading import (
    CANONICAL_SCALE,
    SCALES,
    VALUE_DRIVERS,
    Grade,
    grade_description,
    grade_label,
)
from applebites.services.valuation.multiples import FREE_TIER_MULTIPLES
from applebites.services.valuation.naics import (
    load_default_table,
    normalize_naics_code,
    sector_defaults,
)

logger = get_logger(__name__)

router = APIRouter(tags=["reference"])


@router.get("/grades")
def list_grades() -> Dict[str, Any]:
    return {
        "canonicalScale": CANONICAL_SCALE.name,
        "scales": {
            name: {
                "points": {g.value: scale.points_for(g) for g in Grade},
                "thresholds": {g.value: minimum for minimum, g in scale.thresholds},
                "maxPoints": scale.max_points,
            }
            for name, scale in SCALES.items()
        },
        "grades": [
            {
                "grade": g.value,
                "label": grade_label(g),
                "description": grade_description(g),
                "multiples": FREE_TIER_MULTIPLES[g].as_dict(),
            }
            for g in Grade
        ],
        "valueDrivers": [{"key": key, "label": label} for key, label in VALUE_DRIVERS],
    }


@router.get("/industries/{naics_code}/multiples", response_model=IndustryMultipleOut, response_model_by_alias=True)
def industry_multiples(
    naics_code: str,
    score: Optional[float] = Query(None, ge=0, le=5),
):
    code = normalize_naics_code(naics_code)
    if not code:
        raise HTTPException(status_code=400, detail="NAICS code must contain digits")

    table = load_default_table()
    row = table.get(code)
    if row is not None:
        out = IndustryMultipleOut(
            naics_code=code,
            industry=row.industry,
            source="naics",
            base_range=[row.base_min, row.base_max],
            premium_range=[row.premium_min, row.premium_max],
            notes=row.notes or None,
        )
    else:
        title, base, premium = sector_defaults(code)
        out = IndustryMultipleOut(
            naics_code=code,
            industry=title,
            source="sector_default",
            base_range=[base, base],
            premium_range=[premium, premium],
        )

    if score is not None:
        found = table.lookup(code, score)
        out.score = score
        out.multiple = found.multiple
        out.is_premium = found.is_premium
    return out

"""
naics.py — Industry-Specific EBITDA Multiples by NAICS Code

Purpose:
- Load the read-only NAICS multiple table (bundled CSV, or the file named by
  `NAICS_MULTIPLES_PATH`).
- Turn a NAICS code plus a five-point performance score into a multiple.

Lookup rules:
- Known code, score >= 4.0 → premium range, interpolated over 4.0–5.0.
- Known code, score <  4.0 → base range, interpolated over 0–3.9.
- Unknown code → two-digit sector defaults (conservative estimates).

CSV columns:
    naics_code, industry, base_min, base_max, premium_min, premium_max, notes
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd

from applebites.core.config import settings
from applebites.core.logging import get_logger

logger = get_logger(__name__)

BUNDLED_TABLE_PATH = Path(__file__).parent / "data" / "naics_multiples.csv"

PREMIUM_THRESHOLD = 4.0
MAX_SCORE = 5.0
BASE_SCORE_SPAN = 3.9

REQUIRED_COLUMNS = ("naics_code", "industry", "base_min", "base_max", "premium_min", "premium_max")

# Two-digit NAICS sector → (title, base multiple, premium multiple)
SECTOR_DEFAULTS: Dict[str, Tuple[str, float, float]] = {
    "11": ("Agriculture, Forestry, Fishing and Hunting", 3.0, 5.0),
    "21": ("Mining, Quarrying, and Oil and Gas Extraction", 4.0, 7.0),
    "22": ("Utilities", 5.0, 8.0),
    "23": ("Construction", 4.0, 7.0),
    "31": ("Manufacturing", 4.5, 7.5),
    "32": ("Manufacturing", 4.5, 7.5),
    "33": ("Manufacturing", 4.5, 7.5),
    "42": ("Wholesale Trade", 3.5, 6.0),
    "44": ("Retail Trade", 3.0, 5.5),
    "45": ("Retail Trade", 3.0, 5.5),
    "48": ("Transportation and Warehousing", 3.5, 6.0),
    "49": ("Transportation and Warehousing", 3.5, 6.0),
    "51": ("Information", 7.0, 12.0),
    "52": ("Finance and Insurance", 6.0, 10.0),
    "53": ("Real Estate and Rental and Leasing", 5.0, 8.0),
    "54": ("Professional, Scientific, and Technical Services", 6.5, 11.0),
    "55": ("Management of Companies and Enterprises", 5.5, 9.0),
    "56": ("Administrative and Support and Waste Management", 4.0, 7.0),
    "61": ("Educational Services", 4.5, 7.5),
    "62": ("Health Care and Social Assistance", 5.5, 9.0),
    "71": ("Arts, Entertainment, and Recreation", 3.5, 6.0),
    "72": ("Accommodation and Food Services", 3.0, 5.0),
    "81": ("Other Services (except Public Administration)", 3.5, 6.0),
    "92": ("Public Administration", 4.0, 7.0),
}
FALLBACK_SECTOR = ("Unclassified", 4.0, 7.0)


@dataclass(frozen=True)
class IndustryMultiple:
    naics_code: str
    industry: str
    base_min: float
    base_max: float
    premium_min: float
    premium_max: float
    notes: str = ""


@dataclass(frozen=True)
class IndustryLookup:
    naics_code: str
    multiple: float
    source: str  # "naics" | "sector_default"
    industry: str
    is_premium: bool


def normalize_naics_code(code: Optional[str]) -> str:
    return "".join(ch for ch in str(code or "") if ch.isdigit())


class NaicsMultipleTable:
    """In-memory NAICS multiple table keyed by code."""

    def __init__(self, rows: Dict[str, IndustryMultiple]):
        self._rows = rows

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, code: object) -> bool:
        return normalize_naics_code(code) in self._rows

    @classmethod
    def from_csv(cls, path: Path) -> "NaicsMultipleTable":
        frame = pd.read_csv(path, dtype={"naics_code": str})
        missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
        if missing:
            raise ValueError(f"NAICS table {path} missing columns: {', '.join(missing)}")

        frame = frame.dropna(subset=list(REQUIRED_COLUMNS))
        if "notes" not in frame.columns:
            frame["notes"] = ""
        frame["notes"] = frame["notes"].fillna("")

        rows: Dict[str, IndustryMultiple] = {}
        for record in frame.to_dict(orient="records"):
            code = normalize_naics_code(record["naics_code"])
            if not code:
                continue
            rows[code] = IndustryMultiple(
                naics_code=code,
                industry=str(record["industry"]),
                base_min=float(record["base_min"]),
                base_max=float(record["base_max"]),
                premium_min=float(record["premium_min"]),
                premium_max=float(record["premium_max"]),
                notes=str(record["notes"]),
            )
        logger.info("Loaded %d NAICS multiples from %s", len(rows), path)
        return cls(rows)

    def get(self, code: Optional[str]) -> Optional[IndustryMultiple]:
        return self._rows.get(normalize_naics_code(code))

    def lookup(self, code: Optional[str], score: float) -> IndustryLookup:
        """Multiple for `code` at a five-point performance `score`."""
        code = normalize_naics_code(code)
        score = min(max(score, 0.0), MAX_SCORE)
        is_premium = score >= PREMIUM_THRESHOLD
        row = self._rows.get(code)

        if row is not None:
            if is_premium:
                position = (score - PREMIUM_THRESHOLD) / (MAX_SCORE - PREMIUM_THRESHOLD)
                multiple = row.premium_min + (row.premium_max - row.premium_min) * position
            else:
                position = score / BASE_SCORE_SPAN
                multiple = row.base_min + (row.base_max - row.base_min) * position
            return IndustryLookup(code, multiple, "naics", row.industry, is_premium)

        title, base, premium = sector_defaults(code)
        if is_premium:
            position = (score - PREMIUM_THRESHOLD) / (MAX_SCORE - PREMIUM_THRESHOLD)
            multiple = base + (premium - base) * (0.5 + position * 0.5)
        else:
            multiple = base * (0.7 + (score / PREMIUM_THRESHOLD) * 0.3)
        return IndustryLookup(code, multiple, "sector_default", title, is_premium)


def sector_defaults(code: Optional[str]) -> Tuple[str, float, float]:
    return SECTOR_DEFAULTS.get(normalize_naics_code(code)[:2], FALLBACK_SECTOR)


@lru_cache(maxsize=1)
def load_default_table() -> NaicsMultipleTable:
    override = settings.NAICS_MULTIPLES_PATH.strip()
    path = Path(override).expanduser() if override else BUNDLED_TABLE_PATH
    return NaicsMultipleTable.from_csv(path)


def industry_multiple(naics_code: Optional[str], score: float) -> float:
    """
    Example:
        industry_multiple("238160", 4.0) → 8.5
        industry_multiple("238160", 5.0) → 11.0
    """
    return load_default_table().lookup(naics_code, score).multiple

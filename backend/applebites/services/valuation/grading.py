"""
grading.py — Value Driver Grades and Scoring Scales

Purpose:
- Define the letter grade vocabulary (A, B, C, D, F) and the ten value drivers.
- Hold the grade → points lookup tables in ONE place. Two scales exist:
    * FIVE_POINT (A=5 … F=1) — canonical; used for persisted assessments and
      for NAICS premium-range interpolation (scores out of 5.0).
    * FOUR_POINT (A=4 … F=0) — the performance-assessment scale.
- Reduce ten driver grades to one overall grade.

Scoring rules:
- Missing, blank or unrecognised grades count as "C".
- All ten drivers are always averaged; there is no weighting by impact.
- Bucket thresholds are inclusive: an average that lands exactly on a
  threshold takes the higher grade.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

_GRADE_TEXT = re.compile(r"[ABCDF][+-]?")


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"

    @classmethod
    def parse(cls, value: Any, default: Optional["Grade"] = None) -> "Grade":
        """
        Parse a submitted grade.

        Case-insensitive; one trailing "+"/"-" is ignored ("B+" → B).
        Anything else, including words such as "Average", falls back to
        `default` (C when not given).
        """
        fallback = default if default is not None else cls.C
        if isinstance(value, Grade):
            return value
        if not isinstance(value, str):
            return fallback
        text = value.strip().upper()
        if not _GRADE_TEXT.fullmatch(text):
            return fallback
        return cls(text[0])


DEFAULT_GRADE = Grade.C

# Ordered (key, display label). Keys are the persisted column names.
VALUE_DRIVERS: Tuple[Tuple[str, str], ...] = (
    ("financial_performance", "Financial Performance"),
    ("customer_concentration", "Customer Concentration"),
    ("management_team", "Management Team"),
    ("competitive_position", "Competitive Position"),
    ("growth_prospects", "Growth Prospects"),
    ("systems_processes", "Systems & Processes"),
    ("asset_quality", "Asset Quality"),
    ("industry_outlook", "Industry Outlook"),
    ("risk_factors", "Risk Factors"),
    ("owner_dependency", "Owner Dependency"),
)

VALUE_DRIVER_KEYS: Tuple[str, ...] = tuple(key for key, _ in VALUE_DRIVERS)

GRADE_LABELS: Dict[Grade, Tuple[str, str]] = {
    Grade.A: ("Excellent", "Strong operational performance across all areas"),
    Grade.B: ("Good", "Above average performance with minor improvement areas"),
    Grade.C: ("Average", "Typical business performance with room for enhancement"),
    Grade.D: ("Below Average", "Performance challenges requiring attention"),
    Grade.F: ("Poor", "Significant operational improvements needed"),
}


def grade_label(grade: Grade) -> str:
    return GRADE_LABELS[grade][0]


def grade_description(grade: Grade) -> str:
    return GRADE_LABELS[grade][1]


# -----------------------------------------------------------------------------
# Scales
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class GradingScale:
    """
    Grade → points table plus the thresholds that bucket an average back
    into a letter. `thresholds` is ordered best grade first; the last grade
    in `points` order (F) is the floor.
    """
    name: str
    points: Mapping[Grade, int]
    thresholds: Tuple[Tuple[float, Grade], ...]

    @property
    def max_points(self) -> int:
        return max(self.points.values())

    def points_for(self, grade: Grade) -> int:
        return self.points[grade]

    def bucket(self, average: float) -> Grade:
        for minimum, grade in self.thresholds:
            if average >= minimum:
                return grade
        return Grade.F

    def average(self, grades: Mapping[str, Grade]) -> float:
        if not grades:
            return float(self.points_for(DEFAULT_GRADE))
        total = sum(self.points_for(g) for g in grades.values())
        return total / len(grades)


FIVE_POINT = GradingScale(
    name="five_point",
    points={Grade.A: 5, Grade.B: 4, Grade.C: 3, Grade.D: 2, Grade.F: 1},
    thresholds=((4.5, Grade.A), (4.0, Grade.B), (3.0, Grade.C), (2.0, Grade.D)),
)

FOUR_POINT = GradingScale(
    name="four_point",
    points={Grade.A: 4, Grade.B: 3, Grade.C: 2, Grade.D: 1, Grade.F: 0},
    thresholds=((3.5, Grade.A), (2.5, Grade.B), (1.5, Grade.C), (0.5, Grade.D)),
)

CANONICAL_SCALE = FIVE_POINT

SCALES: Dict[str, GradingScale] = {
    FIVE_POINT.name: FIVE_POINT,
    FOUR_POINT.name: FOUR_POINT,
}


# -----------------------------------------------------------------------------
# Scoring
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class DriverScore:
    grades: Dict[str, Grade]
    average: float
    overall_grade: Grade
    scale: GradingScale

    @property
    def total_points(self) -> int:
        return sum(self.scale.points_for(g) for g in self.grades.values())

    @property
    def max_points(self) -> int:
        return self.scale.max_points * len(self.grades)


def normalize_driver_grades(drivers: Optional[Mapping[str, Any]]) -> Dict[str, Grade]:
    """
    Return a grade for each of the ten drivers.

    Keys outside the ten drivers are ignored; missing drivers get the default.
    """
    drivers = drivers or {}
    return {key: Grade.parse(drivers.get(key)) for key in VALUE_DRIVER_KEYS}


def score_value_drivers(
    drivers: Optional[Mapping[str, Any]],
    scale: GradingScale = CANONICAL_SCALE,
) -> DriverScore:
    """
    Reduce the ten value-driver grades to an overall grade.

    Example (five-point scale):
        all "A" → average 5.0 → A
        five "B" + five "C" → average 3.5 → C
    """
    grades = normalize_driver_grades(drivers)
    average = scale.average(grades)
    return DriverScore(
        grades=grades,
        average=average,
        overall_grade=scale.bucket(average),
        scale=scale,
    )

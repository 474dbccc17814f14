"""
Unit tests for grading.py

Grade parsing, both grading scales and overall-grade bucketing at the
threshold boundaries.
"""

import pytest

from applebites.services.valuation.grading import (
    CANONICAL_SCALE,
    FIVE_POINT,
    FOUR_POINT,
    VALUE_DRIVER_KEYS,
    Grade,
    grade_label,
    normalize_driver_grades,
    score_value_drivers,
)


def make_drivers(*counts):
    """make_drivers(("A", 5), ("B", 5)) → ten driver grades in driver order."""
    letters = [letter for letter, n in counts for _ in range(n)]
    assert len(letters) == len(VALUE_DRIVER_KEYS)
    return dict(zip(VALUE_DRIVER_KEYS, letters))


# ============================================================================
# Grade parsing
# ============================================================================

@pytest.mark.parametrize(
    "raw, expected",
    [("A", Grade.A), ("b", Grade.B), (" d ", Grade.D), ("B+", Grade.B), ("f-", Grade.F)],
)
def test_grade_parse(raw, expected):
    assert Grade.parse(raw) is expected


@pytest.mark.parametrize("raw", [None, "", "E", "Z", 4, "excellent", "Average", "Below Average", "Bad", "Fair", "A++", "AB"])
def test_grade_parse_falls_back_to_c(raw):
    assert Grade.parse(raw) is Grade.C


def test_grade_parse_custom_default():
    assert Grade.parse("?", default=Grade.D) is Grade.D


def test_grade_labels():
    assert grade_label(Grade.A) == "Excellent"
    assert grade_label(Grade.F) == "Poor"


# ============================================================================
# Driver normalization
# ============================================================================

def test_missing_drivers_default_to_c():
    grades = normalize_driver_grades({"financial_performance": "A", "unknown_driver": "F"})
    assert len(grades) == 10
    assert grades["financial_performance"] is Grade.A
    assert "unknown_driver" not in grades
    assert all(g is Grade.C for k, g in grades.items() if k != "financial_performance")


def test_empty_drivers_score_c():
    result = score_value_drivers({})
    assert result.average == 3.0
    assert result.overall_grade is Grade.C
    assert result.total_points == 30
    assert result.max_points == 50


def test_canonical_scale_is_five_point():
    assert CANONICAL_SCALE is FIVE_POINT


# ============================================================================
# Five-point scale
# ============================================================================

@pytest.mark.parametrize(
    "counts, average, expected",
    [
        ((("A", 10),), 5.0, Grade.A),
        ((("A", 5), ("B", 5)), 4.5, Grade.A),
        ((("A", 4), ("B", 6)), 4.4, Grade.B),
        ((("B", 10),), 4.0, Grade.B),
        ((("B", 9), ("C", 1)), 3.9, Grade.C),
        ((("C", 10),), 3.0, Grade.C),
        ((("C", 9), ("D", 1)), 2.9, Grade.D),
        ((("D", 10),), 2.0, Grade.D),
        ((("D", 9), ("F", 1)), 1.9, Grade.F),
        ((("F", 10),), 1.0, Grade.F),
    ],
)
def test_five_point_boundaries(counts, average, expected):
    result = score_value_drivers(make_drivers(*counts), FIVE_POINT)
    assert result.average == pytest.approx(average)
    assert result.overall_grade is expected


# ============================================================================
# Four-point scale
# ============================================================================

@pytest.mark.parametrize(
    "counts, average, expected",
    [
        ((("A", 10),), 4.0, Grade.A),
        ((("A", 5), ("B", 5)), 3.5, Grade.A),
        ((("A", 4), ("B", 6)), 3.4, Grade.B),
        ((("B", 5), ("C", 5)), 2.5, Grade.B),
        ((("B", 4), ("C", 6)), 2.4, Grade.C),
        ((("C", 5), ("D", 5)), 1.5, Grade.C),
        ((("D", 5), ("F", 5)), 0.5, Grade.D),
        ((("D", 4), ("F", 6)), 0.4, Grade.F),
        ((("F", 10),), 0.0, Grade.F),
    ],
)
def test_four_point_boundaries(counts, average, expected):
    result = score_value_drivers(make_drivers(*counts), FOUR_POINT)
    assert result.average == pytest.approx(average)
    assert result.overall_grade is expected


def test_scales_can_disagree():
    drivers = make_drivers(("B", 5), ("C", 5))
    assert score_value_drivers(drivers, FIVE_POINT).overall_grade is Grade.C
    assert score_value_drivers(drivers, FOUR_POINT).overall_grade is Grade.B

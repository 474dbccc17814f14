"""
valuation package — EBITDA-based business valuation engine.

Submodules:
    - normalizer: amount coercion, base and adjusted EBITDA.
    - grading: grade vocabulary, scoring scales, value-driver scoring.
    - naics: industry multiple table keyed by NAICS code.
    - multiples: multiple selection and low/mid/high range.
    - engine: the end-to-end pipeline.
"""

from .engine import ValuationResult, run_valuation  # noqa: F401
from .grading import (  # noqa: F401
    CANONICAL_SCALE,
    FIVE_POINT,
    FOUR_POINT,
    VALUE_DRIVER_KEYS,
    VALUE_DRIVERS,
    Grade,
    score_value_drivers,
)
from .multiples import Tier  # noqa: F401
from .normalizer import FinancialInputs, coerce_amount  # noqa: F401

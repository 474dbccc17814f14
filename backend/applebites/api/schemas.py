"""
schemas.py — Request/Response Models for the Assessment API

The web client speaks camelCase JSON; models use snake_case attributes with
camelCase aliases (either spelling is accepted on input, camelCase is
emitted on output).

Amount fields accept numbers or strings; coercion to float (blank / junk → 0)
happens in the valuation engine, so they are never rejected here.
"""

from __future__ import annotations

import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from applebites.services.valuation.grading import VALUE_DRIVER_KEYS
from applebites.services.valuation.normalizer import ADJUSTMENT_FIELDS, EBITDA_FIELDS

Amount = Optional[Union[float, str]]
TierName = Literal["free", "growth", "capital"]

FOLLOW_UP_INTENTS = {"yes", "maybe", "no"}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# Wizard steps
# -----------------------------------------------------------------------------

class EbitdaStep(CamelModel):
    net_income: Amount = None
    interest: Amount = None
    taxes: Amount = None
    depreciation: Amount = None
    amortization: Amount = None


class AdjustmentsStep(CamelModel):
    owner_salary: Amount = None
    personal_expenses: Amount = None
    one_time_expenses: Amount = None
    other_adjustments: Amount = None
    adjustment_notes: Optional[str] = None


class ValueDriverGrades(CamelModel):
    financial_performance: Optional[str] = None
    customer_concentration: Optional[str] = None
    management_team: Optional[str] = None
    competitive_position: Optional[str] = None
    growth_prospects: Optional[str] = None
    systems_processes: Optional[str] = None
    asset_quality: Optional[str] = None
    industry_outlook: Optional[str] = None
    risk_factors: Optional[str] = None
    owner_dependency: Optional[str] = None


class FollowUpStep(CamelModel):
    follow_up_intent: Optional[str] = None
    additional_comments: Optional[str] = None

    @field_validator("follow_up_intent", mode="before")
    @classmethod
    def normalize_intent(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip().lower()
        return text if text in FOLLOW_UP_INTENTS else None


class ContactStep(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    founding_year: Optional[int] = None
    naics_code: Optional[str] = None
    industry: Optional[str] = None

    @field_validator("founding_year", mode="before")
    @classmethod
    def lenient_year(cls, v: Any) -> Optional[int]:
        if v is None or isinstance(v, bool):
            return None
        try:
            return int(float(str(v).strip()))
        except (ValueError, OverflowError):
            return None


def financial_mapping(model: BaseModel) -> Dict[str, Any]:
    return {name: getattr(model, name, None) for name in EBITDA_FIELDS + ADJUSTMENT_FIELDS}


def driver_mapping(model: BaseModel) -> Dict[str, Any]:
    return {key: getattr(model, key, None) for key in VALUE_DRIVER_KEYS}


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------

class AssessmentSubmission(ContactStep, EbitdaStep, AdjustmentsStep, ValueDriverGrades, FollowUpStep):
    """Flat submission body used by POST /assessments and its tier variants."""
    tier: TierName = "free"
    idempotency_key: Optional[str] = Field(None, max_length=128)


class WizardSubmission(CamelModel):
    """Nested body sent by the multi-step free assessment wizard."""
    ebitda: EbitdaStep = Field(default_factory=EbitdaStep)
    adjustments: AdjustmentsStep = Field(default_factory=AdjustmentsStep)
    value_drivers: ValueDriverGrades = Field(default_factory=ValueDriverGrades)
    follow_up: FollowUpStep = Field(default_factory=FollowUpStep)
    idempotency_key: Optional[str] = Field(None, max_length=128)


class CalculateRequest(EbitdaStep, AdjustmentsStep, ValueDriverGrades):
    tier: TierName = "free"
    naics_code: Optional[str] = None
    scale: Literal["five_point", "four_point"] = "five_point"


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------

class ValuationOut(CamelModel):
    base_ebitda: float
    total_adjustments: float
    adjusted_ebitda: float
    valuation_multiple: float
    low_multiple: float
    high_multiple: float
    low_estimate: float
    mid_estimate: float
    high_estimate: float
    overall_score: str
    average_score: float
    multiple_source: str

    @classmethod
    def from_assessment(cls, assessment: Any) -> "ValuationOut":
        return cls(
            base_ebitda=assessment.base_ebitda,
            total_adjustments=assessment.adjusted_ebitda - assessment.base_ebitda,
            adjusted_ebitda=assessment.adjusted_ebitda,
            valuation_multiple=assessment.valuation_multiple,
            low_multiple=assessment.low_multiple,
            high_multiple=assessment.high_multiple,
            low_estimate=assessment.low_estimate,
            mid_estimate=assessment.mid_estimate,
            high_estimate=assessment.high_estimate,
            overall_score=assessment.overall_score,
            average_score=assessment.average_score,
            multiple_source=assessment.multiple_source,
        )


class AssessmentOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    user_id: Optional[str] = None
    tier: str
    report_tier: str

    first_name: str
    last_name: str
    email: str
    phone: str
    company: str
    job_title: Optional[str] = None
    founding_year: Optional[int] = None
    naics_code: Optional[str] = None
    industry_description: Optional[str] = None

    net_income: float
    interest: float
    taxes: float
    depreciation: float
    amortization: float
    owner_salary: float
    personal_expenses: float
    one_time_expenses: float
    other_adjustments: float
    adjustment_notes: Optional[str] = None

    financial_performance: str
    customer_concentration: str
    management_team: str
    competitive_position: str
    growth_prospects: str
    systems_processes: str
    asset_quality: str
    industry_outlook: str
    risk_factors: str
    owner_dependency: str

    follow_up_intent: str
    additional_comments: Optional[str] = None

    base_ebitda: float
    adjusted_ebitda: float
    valuation_multiple: float
    low_multiple: float
    high_multiple: float
    multiple_source: str
    low_estimate: float
    mid_estimate: float
    high_estimate: float
    overall_score: str
    average_score: float

    narrative_summary: Optional[str] = None
    executive_summary: Optional[str] = None
    is_processed: bool

    created_at: datetime.datetime
    updated_at: datetime.datetime


class SubmissionResponse(CamelModel):
    success: bool = True
    id: int
    duplicate: bool = False
    valuation: ValuationOut
    message: str


class IndustryMultipleOut(CamelModel):
    naics_code: str
    industry: str
    source: str
    base_range: Optional[List[float]] = None
    premium_range: Optional[List[float]] = None
    notes: Optional[str] = None
    score: Optional[float] = None
    multiple: Optional[float] = None
    is_premium: Optional[bool] = None

"""
assessment.py — ORM Model for Valuation Assessments

Purpose:
- Store one submitted valuation assessment: contact details, the financial
  inputs as coerced, the ten value-driver grades, and the computed valuation.
- Report fields (narrative / executive summary, is_processed) are filled in
  after creation by the report step; everything else is write-once.

Important Design Rules:
- Rows are never deleted by the service (kept for assessment history).
- `idempotency_key` is unique: a replayed submission with the same key maps
  to the original row instead of creating a duplicate.
"""

import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String, Text

from applebites.core.database import Base
from applebites.services.valuation.grading import VALUE_DRIVER_KEYS


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Assessment(Base):
    __tablename__ = "valuation_assessments"

    # Primary key
    id = Column(Integer, primary_key=True, index=True)

    # Duplicate-submission guard (client generated)
    idempotency_key = Column(String(128), unique=True, nullable=True)

    # Consumer who submitted (from the session context; nullable for guests)
    user_id = Column(String, nullable=True, index=True)

    # Contact Information
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")
    phone = Column(String, nullable=False, default="")
    company = Column(String, nullable=False, default="")
    job_title = Column(String, nullable=True)
    founding_year = Column(Integer, nullable=True)

    # Industry Classification
    naics_code = Column(String, nullable=True)
    industry_description = Column(String, nullable=True)

    # Tier: "free" | "growth" | "capital"; report tier: "free" | "paid"
    tier = Column(String, nullable=False, default="free")
    report_tier = Column(String, nullable=False, default="free")

    # EBITDA Components
    net_income = Column(Float, nullable=False, default=0.0)
    interest = Column(Float, nullable=False, default=0.0)
    taxes = Column(Float, nullable=False, default=0.0)
    depreciation = Column(Float, nullable=False, default=0.0)
    amortization = Column(Float, nullable=False, default=0.0)

    # Owner Adjustments
    owner_salary = Column(Float, nullable=False, default=0.0)
    personal_expenses = Column(Float, nullable=False, default=0.0)
    one_time_expenses = Column(Float, nullable=False, default=0.0)
    other_adjustments = Column(Float, nullable=False, default=0.0)
    adjustment_notes = Column(Text, nullable=True)

    # Value Driver Grades (A-F)
    financial_performance = Column(String(1), nullable=False, default="C")
    customer_concentration = Column(String(1), nullable=False, default="C")
    management_team = Column(String(1), nullable=False, default="C")
    competitive_position = Column(String(1), nullable=False, default="C")
    growth_prospects = Column(String(1), nullable=False, default="C")
    systems_processes = Column(String(1), nullable=False, default="C")
    asset_quality = Column(String(1), nullable=False, default="C")
    industry_outlook = Column(String(1), nullable=False, default="C")
    risk_factors = Column(String(1), nullable=False, default="C")
    owner_dependency = Column(String(1), nullable=False, default="C")

    # Follow-up: "yes" | "maybe" | "no"
    follow_up_intent = Column(String, nullable=False, default="no")
    additional_comments = Column(Text, nullable=True)

    # Calculated Values
    base_ebitda = Column(Float, nullable=False)
    adjusted_ebitda = Column(Float, nullable=False)
    valuation_multiple = Column(Float, nullable=False)  # market (mid) multiple
    low_multiple = Column(Float, nullable=False)
    high_multiple = Column(Float, nullable=False)
    multiple_source = Column(String, nullable=False, default="grade_table")
    low_estimate = Column(Float, nullable=False)
    mid_estimate = Column(Float, nullable=False)
    high_estimate = Column(Float, nullable=False)
    overall_score = Column(String(1), nullable=False)
    average_score = Column(Float, nullable=False)

    # Generated Content
    narrative_summary = Column(Text, nullable=True)
    executive_summary = Column(Text, nullable=True)
    is_processed = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_assessment_user_created", "user_id", "created_at"),
        Index("idx_assessment_tier", "tier"),
    )

    def value_driver_grades(self) -> dict:
        return {key: getattr(self, key) for key in VALUE_DRIVER_KEYS}

    def __repr__(self):
        return f"<Assessment {self.id} | {self.tier} | {self.overall_score}>"

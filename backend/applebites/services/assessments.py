"""
assessments.py — Persistence Helpers for Valuation Assessments

Purpose:
- Create assessment records from a computed valuation (with idempotency).
- Retrieve single assessments and per-consumer history.
- Record report output once the report step has run.

This module does NOT:
- Compute valuations (see services/valuation).
- Write summaries or talk to the CRM.

It simply encapsulates DB queries for the Assessment model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from applebites.core.logging import get_logger
from applebites.models.assessment import Assessment
from applebites.services.valuation.engine import ValuationResult
from applebites.services.valuation.multiples import Tier

logger = get_logger(__name__)


class AssessmentNotFoundError(LookupError):
    """Raised when an assessment id does not exist."""

    def __init__(self, assessment_id: int):
        super().__init__(f"Assessment {assessment_id} not found")
        self.assessment_id = assessment_id


@dataclass
class ContactDetails:
    """Who the assessment is for. Every field is optional at submission."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    company: str = ""
    job_title: Optional[str] = None
    founding_year: Optional[int] = None
    naics_code: Optional[str] = None
    industry_description: Optional[str] = None
    follow_up_intent: str = "no"
    additional_comments: Optional[str] = None
    adjustment_notes: Optional[str] = None


def get_by_idempotency_key(idempotency_key: str, db: Session) -> Optional[Assessment]:
    return (
        db.query(Assessment)
        .filter(Assessment.idempotency_key == idempotency_key)
        .one_or_none()
    )


def create_assessment(
    result: ValuationResult,
    details: ContactDetails,
    tier: Tier,
    db: Session,
    user_id: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> Tuple[Assessment, bool]:
    """
    Persist a computed valuation.

    Returns:
        (assessment, created). `created` is False when `idempotency_key`
        matched an earlier submission; that earlier record is returned as-is.
        Without a key every call inserts a new row.
    """
    if idempotency_key:
        existing = get_by_idempotency_key(idempotency_key, db)
        if existing is not None:
            logger.info("Duplicate submission for key %s → assessment %s", idempotency_key, existing.id)
            return existing, False

    fin = result.financials
    grades = result.drivers.grades
    assessment = Assessment(
        idempotency_key=idempotency_key or None,
        user_id=user_id,
        first_name=details.first_name or "",
        last_name=details.last_name or "",
        email=details.email or "",
        phone=details.phone or "",
        company=details.company or "",
        job_title=details.job_title,
        founding_year=details.founding_year,
        naics_code=details.naics_code,
        industry_description=details.industry_description,
        tier=tier.value,
        report_tier=tier.report_tier,
        net_income=fin.net_income,
        interest=fin.interest,
        taxes=fin.taxes,
        depreciation=fin.depreciation,
        amortization=fin.amortization,
        owner_salary=fin.owner_salary,
        personal_expenses=fin.personal_expenses,
        one_time_expenses=fin.one_time_expenses,
        other_adjustments=fin.other_adjustments,
        adjustment_notes=details.adjustment_notes,
        follow_up_intent=details.follow_up_intent or "no",
        additional_comments=details.additional_comments,
        base_ebitda=result.base_ebitda,
        adjusted_ebitda=result.adjusted_ebitda,
        valuation_multiple=result.valuation_multiple,
        low_multiple=result.selection.band.low,
        high_multiple=result.selection.band.high,
        multiple_source=result.selection.source,
        low_estimate=result.estimates.low,
        mid_estimate=result.estimates.mid,
        high_estimate=result.estimates.high,
        overall_score=result.overall_score,
        average_score=result.drivers.average,
        is_processed=False,
        **{key: grade.value for key, grade in grades.items()},
    )

    db.add(assessment)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent submission with the same key won the insert
        db.rollback()
        if idempotency_key:
            existing = get_by_idempotency_key(idempotency_key, db)
            if existing is not None:
                return existing, False
        raise

    db.refresh(assessment)
    logger.info(
        "Created %s assessment %s (grade %s, mid %.2f)",
        assessment.tier, assessment.id, assessment.overall_score, assessment.mid_estimate,
    )
    return assessment, True


def get_assessment(assessment_id: int, db: Session) -> Assessment:
    assessment = db.get(Assessment, assessment_id)
    if assessment is None:
        raise AssessmentNotFoundError(assessment_id)
    return assessment


def list_assessments_for_user(user_id: str, db: Session, limit: int = 50) -> List[Assessment]:
    """Newest first."""
    return (
        db.query(Assessment)
        .filter(Assessment.user_id == user_id)
        .order_by(Assessment.created_at.desc(), Assessment.id.desc())
        .limit(limit)
        .all()
    )


def list_assessments(
    db: Session,
    tier: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Assessment]:
    """All assessments, newest first; used by the CRM export script."""
    query = db.query(Assessment)
    if tier:
        query = query.filter(Assessment.tier == tier)
    query = query.order_by(Assessment.created_at.desc(), Assessment.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def record_report(
    assessment: Assessment,
    narrative_summary: str,
    executive_summary: str,
    db: Session,
) -> Assessment:
    """Store report output and mark the assessment processed."""
    assessment.narrative_summary = narrative_summary
    assessment.executive_summary = executive_summary
    assessment.is_processed = True
    db.commit()
    db.refresh(assessment)
    return assessment

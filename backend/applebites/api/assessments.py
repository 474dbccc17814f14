"""
assessments.py — Assessment Submission & Retrieval Endpoints

Purpose:
- Accept a completed assessment (free / growth / capital), compute the
  valuation, persist it and schedule report + CRM work in the background.
- Return stored assessments by id and the current consumer's history.

Idempotency:
- An `Idempotency-Key` header (or `idempotencyKey` body field) collapses
  retries of the same submission into one record; the original valuation is
  returned with `duplicate: true`.
- Without a key every submission creates a new record.
"""

from typing import Callable, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from applebites.api.schemas import (
    AssessmentOut,
    AssessmentSubmission,
    SubmissionResponse,
    ValuationOut,
    driver_mapping,
    financial_mapping,
)
from applebites.core.config import settings
from applebites.core.database import get_db, get_session_factory
from applebites.core.logging import get_logger
from applebites.core.session import ConsumerSession, get_consumer_session
from applebites.services.assessments import (
    AssessmentNotFoundError,
    ContactDetails,
    create_assessment,
    get_assessment,
    list_assessments_for_user,
)
from applebites.services.export import export_assessment_to_crm
from applebites.services.reports import populate_report
from applebites.services.valuation import Tier, run_valuation

logger = get_logger(__name__)

router = APIRouter(
    prefix="/assessments",
    tags=["assessments"]
)


def schedule_followups(
    assessment_id: int,
    background_tasks: BackgroundTasks,
    session_factory: Callable[[], Session],
) -> None:
    """Queue report generation and (optionally) the CRM push for a new record."""
    background_tasks.add_task(populate_report, assessment_id, session_factory)
    if settings.CRM_EXPORT_ON_SUBMIT:
        background_tasks.add_task(export_assessment_to_crm, assessment_id, session_factory)


def _submit(
    submission: AssessmentSubmission,
    tier: Tier,
    idempotency_key: Optional[str],
    consumer: ConsumerSession,
    background_tasks: BackgroundTasks,
    db: Session,
    session_factory: Callable[[], Session],
) -> SubmissionResponse:
    key = (idempotency_key or submission.idempotency_key or "").strip() or None
    try:
        result = run_valuation(
            financial_mapping(submission),
            driver_mapping(submission),
            tier=tier,
            naics_code=submission.naics_code,
        )
        details = ContactDetails(
            first_name=submission.first_name or "",
            last_name=submission.last_name or "",
            email=submission.email or consumer.email or "",
            phone=submission.phone or "",
            company=submission.company_name or "",
            job_title=submission.job_title,
            founding_year=submission.founding_year,
            naics_code=submission.naics_code,
            industry_description=submission.industry,
            follow_up_intent=submission.follow_up_intent or "no",
            additional_comments=submission.additional_comments,
            adjustment_notes=submission.adjustment_notes,
        )
        assessment, created = create_assessment(
            result, details, tier, db,
            user_id=consumer.consumer_id,
            idempotency_key=key,
        )
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Error processing {tier.value} assessment: {e}")
        raise HTTPException(status_code=500, detail="Failed to process assessment")

    if created:
        schedule_followups(assessment.id, background_tasks, session_factory)
        message = "Assessment submitted successfully"
    else:
        message = "Assessment already submitted"

    return SubmissionResponse(
        id=assessment.id,
        duplicate=not created,
        valuation=ValuationOut.from_assessment(assessment),
        message=message,
    )


@router.post("", response_model=SubmissionResponse, response_model_by_alias=True)
def submit_assessment(
    submission: AssessmentSubmission,
    background_tasks: BackgroundTasks,
    idempotency_key: Optional[str] = Header(None),
    consumer: ConsumerSession = Depends(get_consumer_session),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Submit an assessment for the tier named in the body."""
    return _submit(
        submission, Tier(submission.tier), idempotency_key,
        consumer, background_tasks, db, session_factory,
    )


@router.post("/free", response_model=SubmissionResponse, response_model_by_alias=True)
def submit_free_assessment(
    submission: AssessmentSubmission,
    background_tasks: BackgroundTasks,
    idempotency_key: Optional[str] = Header(None),
    consumer: ConsumerSession = Depends(get_consumer_session),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    return _submit(
        submission, Tier.FREE, idempotency_key,
        consumer, background_tasks, db, session_factory,
    )


@router.post("/growth", response_model=SubmissionResponse, response_model_by_alias=True)
def submit_growth_assessment(
    submission: AssessmentSubmission,
    background_tasks: BackgroundTasks,
    idempotency_key: Optional[str] = Header(None),
    consumer: ConsumerSession = Depends(get_consumer_session),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """Growth & Exit assessment: industry-specific multiples, paid report."""
    return _submit(
        submission, Tier.GROWTH, idempotency_key,
        consumer, background_tasks, db, session_factory,
    )


@router.get("", response_model=List[AssessmentOut], response_model_by_alias=True)
def list_my_assessments(
    limit: int = 50,
    consumer: ConsumerSession = Depends(get_consumer_session),
    db: Session = Depends(get_db),
):
    """Assessment history for the calling consumer (empty when anonymous)."""
    if consumer.is_anonymous:
        return []
    return list_assessments_for_user(consumer.consumer_id, db, limit=max(1, min(limit, 200)))


@router.get("/{assessment_id}", response_model=AssessmentOut, response_model_by_alias=True)
def read_assessment(assessment_id: int, db: Session = Depends(get_db)):
    try:
        return get_assessment(assessment_id, db)
    except AssessmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

"""
valuation.py — Wizard Valuation & Stand-alone Calculator Endpoints

Purpose:
- POST /valuation: accept the multi-step wizard's nested payload
  (ebitda / adjustments / valueDrivers / followUp), compute and store it as a
  free assessment. The wizard collects no contact step, so guest placeholder
  contact details are recorded.
- POST /valuation/calculate: compute only, nothing is persisted.
"""

from typing import Callable, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from applebites.api.assessments import schedule_followups
from applebites.api.schemas import (
    AssessmentOut,
    CalculateRequest,
    ValuationOut,
    WizardSubmission,
    driver_mapping,
    financial_mapping,
)
from applebites.core.database import get_db, get_session_factory
from applebites.core.logging import get_logger
from applebites.core.session import ConsumerSession, get_consumer_session
from applebites.services.assessments import ContactDetails, create_assessment
from applebites.services.valuation import Tier, run_valuation
from applebites.services.valuation.grading import SCALES

logger = get_logger(__name__)

router = APIRouter(
    prefix="/valuation",
    tags=["valuation"]
)

GUEST_CONTACT = {
    "first_name": "Guest",
    "last_name": "User",
    "email": "guest@example.com",
    "phone": "",
    "company": "Guest Company",
}


@router.post("", response_model=AssessmentOut, response_model_by_alias=True)
def submit_wizard_valuation(
    payload: WizardSubmission,
    background_tasks: BackgroundTasks,
    idempotency_key: Optional[str] = Header(None),
    consumer: ConsumerSession = Depends(get_consumer_session),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    key = (idempotency_key or payload.idempotency_key or "").strip() or None
    try:
        # Each step only carries its own fields
        financials = {
            name: value
            for step in (payload.ebitda, payload.adjustments)
            for name, value in financial_mapping(step).items()
            if value is not None
        }
        result = run_valuation(financials, driver_mapping(payload.value_drivers), tier=Tier.FREE)

        contact = dict(GUEST_CONTACT)
        if consumer.email:
            contact["email"] = consumer.email
        details = ContactDetails(
            **contact,
            follow_up_intent=payload.follow_up.follow_up_intent or "no",
            additional_comments=payload.follow_up.additional_comments,
            adjustment_notes=payload.adjustments.adjustment_notes,
        )
        assessment, created = create_assessment(
            result, details, Tier.FREE, db,
            user_id=consumer.consumer_id,
            idempotency_key=key,
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Error processing valuation: {e}")
        raise HTTPException(status_code=500, detail="Failed to process valuation")

    if created:
        schedule_followups(assessment.id, background_tasks, session_factory)
    return assessment


@router.post("/calculate", response_model=ValuationOut, response_model_by_alias=True)
def calculate_valuation(request: CalculateRequest):
    """Compute a valuation without storing anything (calculator page)."""
    try:
        result = run_valuation(
            financial_mapping(request),
            driver_mapping(request),
            tier=Tier(request.tier),
            naics_code=request.naics_code,
            scale=SCALES[request.scale],
        )
    except Exception as e:
        logger.error(f"Error calculating valuation: {e}")
        raise HTTPException(status_code=500, detail="Failed to calculate valuation")
    return ValuationOut(**result.to_dict())

"""
contacts.py — CRM Contact Records Built from Assessments

Purpose:
- Turn a stored assessment into the contact the CRM should hold: identity,
  tags that drive CRM workflow automations, and valuation custom fields.
- Render the record for each transport (REST contact body / webhook event).

Tag taxonomy:
    <source tag>              e.g. "applebites-export"
    tier-<tier>               tier-free | tier-growth | tier-capital
    grade-<grade>             grade-A … grade-F
    follow-up-requested       follow-up intent is "yes"
    hot-capital               mid estimate >= HOT_CAPITAL_MIN_VALUATION,
                              grade A/B, and follow-up intent "yes"
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic.alias_generators import to_camel, to_snake

from applebites.core.config import settings
from applebites.services.valuation.grading import VALUE_DRIVER_KEYS

HOT_CAPITAL_GRADES = {"A", "B"}


@dataclass
class ContactRecord:
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None
    tier: str = "free"
    tags: List[str] = field(default_factory=list)
    custom_fields: Dict[str, Any] = field(default_factory=dict)

    def to_rest_payload(self, location_id: str) -> Dict[str, Any]:
        """Body for POST/PUT /contacts/v2 (camelCase, empty values dropped)."""
        payload: Dict[str, Any] = {
            "locationId": location_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "companyName": self.company_name,
            "tags": list(self.tags),
            "customFields": dict(self.custom_fields),
        }
        return {k: v for k, v in payload.items() if v not in (None, "")}

    def to_webhook_payload(self, event: str) -> Dict[str, Any]:
        """Body for a webhook trigger (snake_case, as the CRM workflows expect)."""
        return {
            "event": event,
            "contact": {
                "first_name": self.first_name,
                "last_name": self.last_name,
                "email": self.email,
                "phone": self.phone,
                "company_name": self.company_name,
            },
            "tier": self.tier,
            "tags": list(self.tags),
            "custom_fields": {to_snake(k): v for k, v in self.custom_fields.items()},
            "source": "applebites",
        }


def is_hot_capital(
    mid_estimate: Optional[float],
    overall_score: Optional[str],
    follow_up_intent: Optional[str],
    threshold: Optional[float] = None,
) -> bool:
    threshold = settings.HOT_CAPITAL_MIN_VALUATION if threshold is None else threshold
    return (
        float(mid_estimate or 0.0) >= threshold
        and (overall_score or "") in HOT_CAPITAL_GRADES
        and (follow_up_intent or "") == "yes"
    )


def build_tags(assessment: Any, source_tag: str, threshold: Optional[float] = None) -> List[str]:
    tags = [source_tag, f"tier-{assessment.tier or 'free'}", f"grade-{assessment.overall_score}"]
    if assessment.follow_up_intent == "yes":
        tags.append("follow-up-requested")
    if is_hot_capital(assessment.mid_estimate, assessment.overall_score, assessment.follow_up_intent, threshold):
        tags.append("hot-capital")
    return tags


def build_contact(
    assessment: Any,
    source_tag: str = "applebites-export",
    threshold: Optional[float] = None,
) -> ContactRecord:
    """
    Raises:
        ValueError: when the assessment has no e-mail (CRM contacts are keyed by it)
    """
    email = (assessment.email or "").strip()
    if not email:
        raise ValueError(f"Assessment {assessment.id} has no email address")

    created_at = assessment.created_at
    if isinstance(created_at, datetime.datetime):
        created_at = created_at.isoformat()

    custom_fields: Dict[str, Any] = {
        "assessmentId": assessment.id,
        "assessmentDate": created_at,
        "tier": assessment.tier or "free",
        "overallGrade": assessment.overall_score,
        "valuationLow": float(assessment.low_estimate or 0.0),
        "valuationMid": float(assessment.mid_estimate or 0.0),
        "valuationHigh": float(assessment.high_estimate or 0.0),
        "adjustedEbitda": float(assessment.adjusted_ebitda or 0.0),
        "followUpIntent": assessment.follow_up_intent or "unknown",
        "industry": assessment.industry_description,
        "naicsCode": assessment.naics_code,
    }
    for key in VALUE_DRIVER_KEYS:
        custom_fields[to_camel(key)] = getattr(assessment, key, None)

    return ContactRecord(
        email=email,
        first_name=assessment.first_name or None,
        last_name=assessment.last_name or None,
        phone=assessment.phone or None,
        company_name=assessment.company or None,
        tier=assessment.tier or "free",
        tags=build_tags(assessment, source_tag, threshold),
        custom_fields={k: v for k, v in custom_fields.items() if v is not None},
    )

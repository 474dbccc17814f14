"""
reports.py — Narrative and Executive Summaries for Assessments

Purpose:
- Write the plain-language narrative summary and the executive summary
  stored on each assessment.
- Template summaries are always available. When LLM_ENABLED is set and an
  OpenAI key is configured, the OpenAI Chat Completions API writes them
  instead; any LLM failure falls back to the templates.
- `populate_report()` is the background-task entrypoint: it loads the
  assessment, writes the summaries and marks it processed.

This module does NOT change any computed valuation figure.
"""

from __future__ import annotations

import datetime
import json
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from openai import OpenAI
from sqlalchemy.orm import Session

from applebites.core.config import settings
from applebites.core.logging import get_logger
from applebites.services.assessments import AssessmentNotFoundError, get_assessment, record_report
from applebites.services.valuation.grading import VALUE_DRIVERS, Grade

logger = get_logger(__name__)

STRONG_GRADES = {Grade.A, Grade.B}
WEAK_GRADES = {Grade.C, Grade.D, Grade.F}

STRENGTH_LINES = {
    "financial_performance": "Strong financial performance",
    "management_team": "Experienced management team",
    "growth_prospects": "Positive growth trajectory",
}
OPPORTUNITY_LINES = {
    "systems_processes": "Enhance operational systems and processes",
    "customer_concentration": "Diversify customer base",
    "owner_dependency": "Reduce owner dependency",
}


@dataclass(frozen=True)
class ReportSummaries:
    narrative_summary: str
    executive_summary: str
    source: str  # "template" | "llm"


def format_currency(amount: Optional[float]) -> str:
    value = float(amount or 0.0)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def grade_wording(grade: str) -> str:
    parsed = Grade.parse(grade)
    if parsed in STRONG_GRADES:
        return "strong"
    if parsed is Grade.C:
        return "moderate"
    return "improvement opportunities in"


def _company_age(founding_year: Optional[int], today: Optional[datetime.date] = None) -> Optional[int]:
    if not founding_year:
        return None
    today = today or datetime.date.today()
    age = today.year - int(founding_year)
    return age if age >= 0 else None


# -----------------------------------------------------------------------------
# Template summaries
# -----------------------------------------------------------------------------

def generate_narrative_summary(assessment: Any, today: Optional[datetime.date] = None) -> str:
    company = assessment.company or "The company"
    industry = assessment.industry_description
    age = _company_age(assessment.founding_year, today)

    if age is not None and industry:
        intro = f"{company} is a {age}-year-old {industry} company"
    elif industry:
        intro = f"{company} is a {industry} company"
    else:
        intro = company

    grade = assessment.overall_score
    return (
        f"{intro} with an adjusted EBITDA of {format_currency(assessment.adjusted_ebitda)}. "
        f"Based on our analysis of 10 key value drivers, we estimate the business value to be "
        f"between {format_currency(assessment.low_estimate)} and {format_currency(assessment.high_estimate)}, "
        f"with a most likely value of {format_currency(assessment.mid_estimate)}. "
        f"The company received an overall grade of {grade}, reflecting {grade_wording(grade)} "
        f"performance across key business metrics."
    )


def _driver_bullets(assessment: Any, lines: dict, grades: set) -> List[str]:
    return [
        f"• {text}"
        for key, text in lines.items()
        if Grade.parse(getattr(assessment, key, None)) in grades
    ]


def generate_executive_summary(assessment: Any) -> str:
    company = assessment.company or "The company"
    sector = assessment.industry_description or "its"
    naics = f" (NAICS: {assessment.naics_code})" if assessment.naics_code else ""

    parts = [
        "EXECUTIVE SUMMARY",
        "",
        f"{company} operates in the {sector} sector{naics}.",
        "",
        "KEY FINDINGS:",
        f"• Adjusted EBITDA: {format_currency(assessment.adjusted_ebitda)}",
        f"• Valuation Multiple: {float(assessment.valuation_multiple or 0):.1f}x",
        f"• Estimated Value Range: {format_currency(assessment.low_estimate)} - "
        f"{format_currency(assessment.high_estimate)}",
        f"• Most Likely Value: {format_currency(assessment.mid_estimate)}",
        f"• Overall Grade: {assessment.overall_score}",
    ]

    strengths = _driver_bullets(assessment, STRENGTH_LINES, STRONG_GRADES)
    if strengths:
        parts += ["", "STRENGTHS:", *strengths]

    opportunities = _driver_bullets(assessment, OPPORTUNITY_LINES, WEAK_GRADES)
    if opportunities:
        parts += ["", "OPPORTUNITIES:", *opportunities]

    return "\n".join(parts)


# -----------------------------------------------------------------------------
# LLM summaries
# -----------------------------------------------------------------------------

SYSTEM_PROMPT = (
    "You are a professional business valuation analyst. Generate concise, "
    "insightful summaries for business valuations. Return a JSON object with "
    'exactly two string fields: "narrative_summary" (2-3 sentences, plain '
    'language) and "executive_summary" (1-2 paragraphs with key insights and '
    "recommendations)."
)


def _build_user_prompt(assessment: Any) -> str:
    drivers = "\n".join(
        f"- {label}: {getattr(assessment, key, None) or 'C'}" for key, label in VALUE_DRIVERS
    )
    return f"""Write the summaries for this business valuation:

Base EBITDA: {format_currency(assessment.base_ebitda)}
Adjusted EBITDA: {format_currency(assessment.adjusted_ebitda)}
Valuation Multiple: {float(assessment.valuation_multiple or 0):.1f}x
Valuation Range: {format_currency(assessment.low_estimate)} - {format_currency(assessment.high_estimate)}
Mid-point Estimate: {format_currency(assessment.mid_estimate)}
Overall Grade: {assessment.overall_score}

Value Drivers:
{drivers}

Additional Context: {assessment.additional_comments or 'None provided'}"""


def llm_available() -> bool:
    return bool(settings.LLM_ENABLED and settings.OPENAI_API_KEY.strip())


def write_summaries_with_llm(assessment: Any, client: Optional[OpenAI] = None) -> ReportSummaries:
    """
    Raises:
        ValueError: on an empty or malformed LLM response
    """
    client = client or OpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.LLM_TIMEOUT_SECONDS)
    response = client.chat.completions.create(
        model=settings.OPENAI_MODEL,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": _build_user_prompt(assessment)},
        ],
        temperature=0.7,
        response_format={"type": "json_object"},
    )

    content = response.choices[0].message.content
    if not content:
        raise ValueError("Empty response from LLM")

    result = json.loads(content)
    narrative = (result.get("narrative_summary") or "").strip()
    executive = (result.get("executive_summary") or "").strip()
    if not narrative or not executive:
        raise ValueError("LLM response missing narrative_summary or executive_summary")

    return ReportSummaries(narrative, executive, source="llm")


def write_summaries(assessment: Any, client: Optional[OpenAI] = None) -> ReportSummaries:
    if llm_available() or client is not None:
        try:
            return write_summaries_with_llm(assessment, client=client)
        except Exception as e:
            logger.warning(f"LLM summary failed for assessment {assessment.id}, using template: {e}")

    return ReportSummaries(
        narrative_summary=generate_narrative_summary(assessment),
        executive_summary=generate_executive_summary(assessment),
        source="template",
    )


# -----------------------------------------------------------------------------
# Background entrypoint
# -----------------------------------------------------------------------------

def populate_report(assessment_id: int, session_factory: Callable[[], Session]) -> None:
    """Fill in report fields for a stored assessment. Errors are logged only."""
    db = session_factory()
    try:
        assessment = get_assessment(assessment_id, db)
        summaries = write_summaries(assessment)
        record_report(assessment, summaries.narrative_summary, summaries.executive_summary, db)
        logger.info(f"Report ({summaries.source}) written for assessment {assessment_id}")
    except AssessmentNotFoundError as e:
        logger.error(str(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Report generation failed for assessment {assessment_id}: {e}")
    finally:
        db.close()

"""
exporter.py — Push Assessments into the CRM

Purpose:
- One entrypoint for every CRM push (single submission or bulk backfill),
  independent of the transport underneath.
- A failure on one assessment is recorded and the batch continues.

Key Interactions:
- services.export.contacts → builds the contact + tags from an assessment.
- services.export.transports → delivers it (REST upsert or webhook).
- services.assessments → loads stored assessments for background pushes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from applebites.core.logging import get_logger
from applebites.services.assessments import AssessmentNotFoundError, get_assessment
from applebites.services.export.contacts import ContactRecord, build_contact
from applebites.services.export.transports import (
    ContactTransport,
    ExportError,
    TransportResult,
    build_transport,
)

logger = get_logger(__name__)


@dataclass
class ExportSummary:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    results: List[TransportResult] = field(default_factory=list)
    errors: List[Tuple[Any, str]] = field(default_factory=list)


class AssessmentExporter:
    def __init__(self, transport: ContactTransport, source_tag: str = "applebites-export"):
        self._transport = transport
        self._source_tag = source_tag

    @property
    def transport(self) -> ContactTransport:
        return self._transport

    def contact_for(self, assessment: Any) -> ContactRecord:
        return build_contact(assessment, source_tag=self._source_tag)

    def export_one(self, assessment: Any) -> TransportResult:
        """
        Raises:
            ValueError: assessment cannot be turned into a contact (no email)
            ExportError: delivery failed after retries / misconfiguration
        """
        return self._transport.send(self.contact_for(assessment))

    def export_many(self, assessments: Iterable[Any]) -> ExportSummary:
        summary = ExportSummary()
        for assessment in assessments:
            summary.attempted += 1
            try:
                summary.results.append(self.export_one(assessment))
                summary.succeeded += 1
            except (ValueError, ExportError) as e:
                summary.failed += 1
                summary.errors.append((assessment.id, str(e)))
                logger.error(f"Failed to export assessment {assessment.id}: {e}")
            except Exception as e:
                summary.failed += 1
                summary.errors.append((assessment.id, f"{type(e).__name__}: {e}"))
                logger.exception(f"Unexpected error exporting assessment {assessment.id}")

        logger.info(
            "CRM export via %s: %d attempted, %d succeeded, %d failed",
            self._transport.name, summary.attempted, summary.succeeded, summary.failed,
        )
        return summary


def export_assessment_to_crm(
    assessment_id: int,
    session_factory: Callable[[], Session],
    transport: Optional[ContactTransport] = None,
) -> None:
    """Background-task entrypoint for a single new assessment. Errors are logged only."""
    db = session_factory()
    try:
        assessment = get_assessment(assessment_id, db)
        exporter = AssessmentExporter(transport or build_transport(), source_tag="applebites-submission")
        result = exporter.export_one(assessment)
        logger.info(f"Assessment {assessment_id} exported to CRM via {result.transport}")
    except (AssessmentNotFoundError, ValueError, ExportError) as e:
        logger.error(f"CRM export failed for assessment {assessment_id}: {e}")
    except Exception:
        logger.exception(f"Unexpected error exporting assessment {assessment_id} to CRM")
    finally:
        db.close()

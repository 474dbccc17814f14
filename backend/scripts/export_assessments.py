"""
export_assessments.py — Push stored assessments into GoHighLevel.

Backfills the CRM from the assessments table over the REST contacts API or
the per-tier webhooks. One failing assessment is reported and the run
continues.

Example:
    python scripts/export_assessments.py --transport rest --tier growth --limit 100
    python scripts/export_assessments.py --dry-run
"""

from __future__ import annotations

import argparse
import json
import sys

from applebites.core.database import SessionLocal
from applebites.core.logging import configure_logging, get_logger
from applebites.services.assessments import list_assessments
from applebites.services.export import AssessmentExporter, ExportConfigurationError, build_contact, build_transport

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export stored valuation assessments to GoHighLevel"
    )
    parser.add_argument(
        "--transport",
        choices=["rest", "webhook"],
        default=None,
        help="CRM transport (default: CRM_TRANSPORT setting)",
    )
    parser.add_argument(
        "--tier",
        choices=["free", "growth", "capital"],
        default=None,
        help="Only export assessments of this tier",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of assessments to export (newest first)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the contact payloads instead of sending them",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging()

    db = SessionLocal()
    try:
        assessments = list_assessments(db, tier=args.tier, limit=args.limit)
        logger.info(f"Loaded {len(assessments)} assessments for export")

        if args.dry_run:
            for assessment in assessments:
                try:
                    contact = build_contact(assessment, source_tag="applebites-export")
                except ValueError as e:
                    print(f"SKIP {assessment.id}: {e}")
                    continue
                print(json.dumps(contact.to_webhook_payload("assessment_completed"), indent=2, default=str))
            print(f"\n✓ Dry run: {len(assessments)} assessments")
            return 0

        try:
            transport = build_transport(args.transport)
        except ExportConfigurationError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2

        summary = AssessmentExporter(transport).export_many(assessments)
    finally:
        db.close()

    print(f"\n✓ Exported {summary.succeeded}/{summary.attempted} assessments via {transport.name}")
    if summary.failed:
        print(f"  {summary.failed} failed:")
        for assessment_id, error in summary.errors:
            print(f"    - {assessment_id}: {error}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

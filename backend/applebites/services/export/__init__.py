"""
export package — CRM (GoHighLevel) export adapter.

Expose the exporter and transports so the API layer and scripts can import
without touching concrete HTTP implementations directly.
"""

from .contacts import ContactRecord, build_contact, is_hot_capital  # noqa: F401
from .exporter import AssessmentExporter, ExportSummary, export_assessment_to_crm  # noqa: F401
from .transports import (  # noqa: F401
    ExportConfigurationError,
    ExportError,
    ExportTransportError,
    RestContactTransport,
    WebhookTransport,
    build_transport,
)

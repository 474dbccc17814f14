"""
Unit tests for the CRM export adapter (contacts, transports, exporter).

HTTP is replaced by a fake requests session; retries run with zero backoff.
"""

import datetime
from types import SimpleNamespace

import pytest
import requests

from applebites.services.export import (
    AssessmentExporter,
    ExportConfigurationError,
    ExportTransportError,
    RestContactTransport,
    WebhookTransport,
    build_contact,
    build_transport,
    is_hot_capital,
)
from applebites.services.export.transports import TransportSettings
from applebites.services.valuation import VALUE_DRIVER_KEYS

FAST_RETRY = TransportSettings(timeout_seconds=5, max_retries=3, backoff_base=0)
WEBHOOKS = {"free": "https://hooks.test/free", "growth": "https://hooks.test/growth"}


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body if body is not None else {}

    def json(self):
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.headers = {}

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_assessment(**overrides):
    fields = {
        "id": 7,
        "email": "jane@example.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "phone": "",
        "company": "Acme Roofing",
        "tier": "free",
        "overall_score": "B",
        "low_estimate": 500000.0,
        "mid_estimate": 700000.0,
        "high_estimate": 900000.0,
        "adjusted_ebitda": 155000.0,
        "follow_up_intent": "no",
        "industry_description": None,
        "naics_code": None,
        "created_at": datetime.datetime(2025, 1, 2, 3, 4, 5),
        **{key: "B" for key in VALUE_DRIVER_KEYS},
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


# ============================================================================
# Contacts and tags
# ============================================================================

def test_build_contact_fields_and_tags():
    contact = build_contact(make_assessment(follow_up_intent="yes"), source_tag="applebites-export")
    assert contact.email == "jane@example.com"
    assert contact.phone is None
    assert contact.tags == ["applebites-export", "tier-free", "grade-B", "follow-up-requested"]
    assert contact.custom_fields["valuationMid"] == 700000.0
    assert contact.custom_fields["financialPerformance"] == "B"
    assert contact.custom_fields["assessmentDate"] == "2025-01-02T03:04:05"
    assert "naicsCode" not in contact.custom_fields


def test_build_contact_requires_email():
    with pytest.raises(ValueError):
        build_contact(make_assessment(email="  "))


@pytest.mark.parametrize(
    "mid, grade, intent, expected",
    [
        (2_000_000, "A", "yes", True),
        (2_500_000, "B", "yes", True),
        (1_999_999, "A", "yes", False),
        (3_000_000, "C", "yes", False),
        (3_000_000, "A", "maybe", False),
    ],
)
def test_is_hot_capital(mid, grade, intent, expected):
    assert is_hot_capital(mid, grade, intent, threshold=2_000_000) is expected


def test_hot_capital_tag():
    contact = build_contact(make_assessment(mid_estimate=2_400_000.0, overall_score="A", follow_up_intent="yes"))
    assert "hot-capital" in contact.tags


def test_rest_payload_drops_empty_values():
    payload = build_contact(make_assessment()).to_rest_payload("loc-1")
    assert payload["locationId"] == "loc-1"
    assert payload["companyName"] == "Acme Roofing"
    assert "phone" not in payload


def test_webhook_payload_is_snake_case():
    payload = build_contact(make_assessment()).to_webhook_payload("assessment_completed")
    assert payload["event"] == "assessment_completed"
    assert payload["contact"]["first_name"] == "Jane"
    assert payload["custom_fields"]["valuation_mid"] == 700000.0
    assert payload["custom_fields"]["owner_dependency"] == "B"


# ============================================================================
# REST transport
# ============================================================================

def rest_transport(session):
    return RestContactTransport(
        api_key="token", location_id="loc-1", base_url="https://crm.test",
        api_version="2021-07-28", session=session, config=FAST_RETRY,
    )


def test_rest_creates_new_contact():
    session = FakeSession(
        FakeResponse(200, {"contacts": []}),
        FakeResponse(201, {"contact": {"id": "c-1"}}),
    )
    result = rest_transport(session).send(build_contact(make_assessment()))

    assert result.created is True
    assert result.contact_id == "c-1"
    assert session.headers["Authorization"] == "Bearer token"
    assert session.headers["Version"] == "2021-07-28"
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "https://crm.test/contacts/v2/search")
    assert kwargs["params"] == {"locationId": "loc-1", "email": "jane@example.com"}
    assert session.calls[1][:2] == ("POST", "https://crm.test/contacts/v2/")


def test_rest_search_rejects_non_object_body():
    session = FakeSession(FakeResponse(200, ["unexpected"]))
    with pytest.raises(ExportTransportError):
        rest_transport(session).find_contact_id("jane@example.com")


def test_rest_create_rejects_non_object_contact():
    session = FakeSession(
        FakeResponse(200, {"contacts": []}),
        FakeResponse(201, {"contact": "c-1"}),
    )
    with pytest.raises(ExportTransportError):
        rest_transport(session).send(build_contact(make_assessment()))


def test_rest_updates_existing_contact():
    session = FakeSession(
        FakeResponse(200, {"contacts": [{"id": "c-9"}]}),
        FakeResponse(200, {}),
    )
    result = rest_transport(session).send(build_contact(make_assessment()))
    assert result.created is False
    assert session.calls[1][:2] == ("PUT", "https://crm.test/contacts/v2/c-9")


def test_rest_retries_server_errors():
    session = FakeSession(
        FakeResponse(503),
        requests.ConnectionError("reset"),
        FakeResponse(200, {"contacts": [{"id": "c-9"}]}),
        FakeResponse(200, {}),
    )
    result = rest_transport(session).send(build_contact(make_assessment()))
    assert result.contact_id == "c-9"
    assert len(session.calls) == 4


def test_rest_gives_up_after_max_retries():
    session = FakeSession(FakeResponse(429), FakeResponse(502), FakeResponse(500))
    with pytest.raises(ExportTransportError):
        rest_transport(session).send(build_contact(make_assessment()))
    assert len(session.calls) == 3


def test_rest_client_error_not_retried():
    session = FakeSession(FakeResponse(401))
    with pytest.raises(ExportTransportError):
        rest_transport(session).send(build_contact(make_assessment()))
    assert len(session.calls) == 1


def test_rest_requires_credentials():
    with pytest.raises(ExportConfigurationError):
        RestContactTransport(api_key="", location_id="loc-1", session=FakeSession(), config=FAST_RETRY)


# ============================================================================
# Webhook transport
# ============================================================================

def test_webhook_posts_to_tier_url():
    session = FakeSession(FakeResponse(200))
    transport = WebhookTransport(urls=WEBHOOKS, session=session, config=FAST_RETRY)
    result = transport.send(build_contact(make_assessment(tier="growth")))

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://hooks.test/growth")
    assert kwargs["json"]["tier"] == "growth"
    assert result.status_code == 200


def test_webhook_missing_tier_url():
    transport = WebhookTransport(urls=WEBHOOKS, session=FakeSession(), config=FAST_RETRY)
    with pytest.raises(ExportConfigurationError):
        transport.send(build_contact(make_assessment(tier="capital")))


def test_webhook_requires_some_url():
    with pytest.raises(ExportConfigurationError):
        WebhookTransport(urls={"free": " "}, session=FakeSession(), config=FAST_RETRY)


def test_build_transport_unknown_name():
    with pytest.raises(ExportConfigurationError):
        build_transport("carrier-pigeon")


# ============================================================================
# Exporter
# ============================================================================

def test_export_many_continues_after_failures():
    session = FakeSession(FakeResponse(200), FakeResponse(400), FakeResponse(200))
    exporter = AssessmentExporter(WebhookTransport(urls=WEBHOOKS, session=session, config=FAST_RETRY))
    assessments = [
        make_assessment(id=1),
        make_assessment(id=2, email=""),
        make_assessment(id=3),
        make_assessment(id=4),
    ]

    summary = exporter.export_many(assessments)

    assert summary.attempted == 4
    assert summary.succeeded == 2
    assert summary.failed == 2
    assert [assessment_id for assessment_id, _ in summary.errors] == [2, 3]
    assert len(session.calls) == 3


def test_export_many_continues_after_malformed_search_response():
    session = FakeSession(
        FakeResponse(200, ["unexpected"]),
        FakeResponse(200, {"contacts": []}),
        FakeResponse(201, {"contact": {"id": "c-2"}}),
    )
    exporter = AssessmentExporter(rest_transport(session))

    summary = exporter.export_many([make_assessment(id=1), make_assessment(id=2)])

    assert summary.attempted == 2
    assert summary.succeeded == 1
    assert summary.failed == 1
    assert summary.errors[0][0] == 1
    assert summary.results[0].contact_id == "c-2"


def test_export_many_continues_after_unexpected_error():
    session = FakeSession(RuntimeError("socket closed"), FakeResponse(200))
    exporter = AssessmentExporter(WebhookTransport(urls=WEBHOOKS, session=session, config=FAST_RETRY))

    summary = exporter.export_many([make_assessment(id=1), make_assessment(id=2)])

    assert summary.attempted == 2
    assert summary.succeeded == 1
    assert summary.errors == [(1, "RuntimeError: socket closed")]

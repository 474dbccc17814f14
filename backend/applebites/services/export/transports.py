"""
transports.py — Pluggable CRM Delivery (GoHighLevel REST API / Webhooks)

Purpose:
- Deliver a ContactRecord to GoHighLevel over one of two transports:
    * RestContactTransport — upsert through the contacts API
      (search by email → PUT existing / POST new).
    * WebhookTransport — POST an event to the tier's webhook trigger URL.
- Share one retry policy: exponential backoff on connection errors,
  429 and 5xx responses; other 4xx fail immediately.

Both transports are sync/blocking and hold a `requests.Session`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from applebites.core.config import settings
from applebites.core.logging import get_logger
from applebites.services.export.contacts import ContactRecord

logger = get_logger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class ExportError(RuntimeError):
    """Base exception for CRM export failures."""


class ExportConfigurationError(ExportError):
    """Raised when required CRM configuration is missing or invalid."""


class ExportTransportError(ExportError):
    """Raised when a CRM request fails after retries."""


@dataclass(frozen=True)
class TransportSettings:
    timeout_seconds: int
    max_retries: int
    backoff_base: float

    @classmethod
    def from_app_settings(cls) -> "TransportSettings":
        return cls(
            timeout_seconds=settings.CRM_REQUEST_TIMEOUT_SECONDS,
            max_retries=settings.CRM_MAX_RETRIES,
            backoff_base=settings.CRM_BACKOFF_BASE,
        )


@dataclass(frozen=True)
class TransportResult:
    email: str
    transport: str
    contact_id: Optional[str] = None
    created: Optional[bool] = None
    status_code: Optional[int] = None


class ContactTransport(ABC):
    """Shared request/retry plumbing for CRM transports."""

    name = "base"

    def __init__(self, session: Optional[requests.Session] = None, config: Optional[TransportSettings] = None):
        self._session = session or requests.Session()
        self._config = config or TransportSettings.from_app_settings()

    @abstractmethod
    def send(self, contact: ContactRecord) -> TransportResult:
        """Deliver one contact."""

    # ------------------------------------------------------------------ #
    # Request helpers
    # ------------------------------------------------------------------ #

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(max(self._config.max_retries, 1)),
            wait=wait_exponential(multiplier=self._config.backoff_base, min=0, max=10),
            retry=retry_if_exception_type((requests.RequestException,)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self._retrying()(self._perform_request, method, url, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ExportTransportError(f"{method} {url} failed: {e}") from e
        return response

    def _perform_request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        logger.debug("%s %s", method, url)
        response = self._session.request(method, url, timeout=self._config.timeout_seconds, **kwargs)
        if response.status_code in RETRYABLE_STATUS:
            msg = f"CRM request throttled or server error (status {response.status_code})"
            logger.warning("%s, retrying", msg)
            raise requests.HTTPError(msg, response=response)
        return response


def _json_object(response: requests.Response) -> Dict[str, Any]:
    """Response body as a JSON object; anything else is a transport error."""
    try:
        body = response.json()
    except ValueError as e:
        raise ExportTransportError(f"CRM returned a non-JSON body: {e}") from e
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ExportTransportError(f"CRM returned {type(body).__name__}, expected a JSON object")
    return body


class RestContactTransport(ContactTransport):
    """Upsert contacts through the GoHighLevel contacts API."""

    name = "rest"

    def __init__(
        self,
        api_key: Optional[str] = None,
        location_id: Optional[str] = None,
        base_url: Optional[str] = None,
        api_version: Optional[str] = None,
        session: Optional[requests.Session] = None,
        config: Optional[TransportSettings] = None,
    ):
        super().__init__(session=session, config=config)
        self._api_key = (api_key if api_key is not None else settings.GHL_API_KEY).strip()
        self._location_id = (location_id if location_id is not None else settings.GHL_LOCATION_ID).strip()
        self._base_url = (base_url or settings.GHL_BASE_URL).rstrip("/")
        if not self._api_key or not self._location_id:
            raise ExportConfigurationError("GHL_API_KEY and GHL_LOCATION_ID must be configured for REST export.")

        self._session.headers.update({
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Version": api_version or settings.GHL_API_VERSION,
        })

    def find_contact_id(self, email: str) -> Optional[str]:
        response = self._request(
            "GET",
            f"{self._base_url}/contacts/v2/search",
            params={"locationId": self._location_id, "email": email},
        )
        body = _json_object(response)
        contacts = body.get("contacts") or []
        if not isinstance(contacts, list) or (contacts and not isinstance(contacts[0], dict)):
            raise ExportTransportError(f"Unexpected contact search response for {email}")
        return contacts[0].get("id") if contacts else None

    def send(self, contact: ContactRecord) -> TransportResult:
        payload = contact.to_rest_payload(self._location_id)
        contact_id = self.find_contact_id(contact.email)

        if contact_id:
            response = self._request("PUT", f"{self._base_url}/contacts/v2/{contact_id}", json=payload)
            logger.info("Updated CRM contact %s", contact.email)
            return TransportResult(contact.email, self.name, contact_id, False, response.status_code)

        response = self._request("POST", f"{self._base_url}/contacts/v2/", json=payload)
        contact_body = _json_object(response).get("contact") or {}
        if not isinstance(contact_body, dict):
            raise ExportTransportError(f"Unexpected contact create response for {contact.email}")
        new_id = contact_body.get("id")
        logger.info("Created CRM contact %s", contact.email)
        return TransportResult(contact.email, self.name, new_id, True, response.status_code)


class WebhookTransport(ContactTransport):
    """POST assessment events to per-tier webhook trigger URLs."""

    name = "webhook"
    event = "assessment_completed"

    def __init__(
        self,
        urls: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
        config: Optional[TransportSettings] = None,
    ):
        super().__init__(session=session, config=config)
        if urls is None:
            urls = {
                "free": settings.GHL_WEBHOOK_FREE_RESULTS,
                "growth": settings.GHL_WEBHOOK_GROWTH_RESULTS,
                "capital": settings.GHL_WEBHOOK_CAPITAL_PURCHASE,
            }
        self._urls = {tier: url.strip() for tier, url in urls.items() if url and url.strip()}
        if not self._urls:
            raise ExportConfigurationError("At least one GHL_WEBHOOK_* URL must be configured for webhook export.")

    def url_for(self, tier: str) -> str:
        url = self._urls.get(tier)
        if not url:
            raise ExportConfigurationError(f"No webhook URL configured for tier '{tier}'")
        return url

    def send(self, contact: ContactRecord) -> TransportResult:
        url = self.url_for(contact.tier)
        response = self._request("POST", url, json=contact.to_webhook_payload(self.event))
        logger.info("Webhook delivered for %s (%s tier)", contact.email, contact.tier)
        return TransportResult(contact.email, self.name, status_code=response.status_code)


TRANSPORTS = {
    RestContactTransport.name: RestContactTransport,
    WebhookTransport.name: WebhookTransport,
}


def build_transport(name: Optional[str] = None, **kwargs: Any) -> ContactTransport:
    """Construct the transport named by `name` (default: CRM_TRANSPORT)."""
    key = (name or settings.CRM_TRANSPORT).strip().lower()
    try:
        transport_cls = TRANSPORTS[key]
    except KeyError:
        raise ExportConfigurationError(f"Unknown CRM transport '{key}' (expected one of: {', '.join(TRANSPORTS)})")
    return transport_cls(**kwargs)

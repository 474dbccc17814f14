"""
session.py — Consumer Session Context

Purpose:
- Give endpoints one typed object describing who is submitting or browsing
  assessments, instead of each handler reading identity ad hoc.
- The web client sends the consumer identity it already holds as headers:
    X-Consumer-Id:    stable consumer/user id
    X-Consumer-Email: consumer e-mail (optional)

This module does NOT authenticate anyone. It only carries identity that the
caller asserts; login/session cookies are handled outside this service.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header


@dataclass(frozen=True)
class ConsumerSession:
    consumer_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.consumer_id


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_consumer_session(
    x_consumer_id: Optional[str] = Header(None),
    x_consumer_email: Optional[str] = Header(None),
) -> ConsumerSession:
    """FastAPI dependency: the single accessor for consumer identity."""
    return ConsumerSession(
        consumer_id=_clean(x_consumer_id),
        email=_clean(x_consumer_email),
    )

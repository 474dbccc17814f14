"""
Unit tests for the consumer session dependency.
"""

from applebites.core.session import ConsumerSession, get_consumer_session


def test_session_from_headers():
    session = get_consumer_session(x_consumer_id=" user-1 ", x_consumer_email="a@b.co")
    assert session == ConsumerSession("user-1", "a@b.co")
    assert not session.is_anonymous


def test_blank_headers_are_anonymous():
    session = get_consumer_session(x_consumer_id="  ", x_consumer_email=None)
    assert session.consumer_id is None
    assert session.is_anonymous

"""
Unit tests for the logging setup.
"""

import logging

from applebites.core.logging import LOG_FORMAT, configure_logging, get_logger


def test_http_client_loggers_capped_at_warning():
    configure_logging("INFO", quiet=("applebites.tests.chatty_client",))
    assert logging.getLogger("applebites.tests.chatty_client").level == logging.WARNING


def test_debug_leaves_client_loggers_alone():
    configure_logging("DEBUG", quiet=("applebites.tests.debug_client",))
    assert logging.getLogger("applebites.tests.debug_client").level == logging.NOTSET


def test_unknown_level_falls_back_to_info():
    configure_logging("LOUD", quiet=("applebites.tests.fallback_client",))
    assert logging.getLogger("applebites.tests.fallback_client").level == logging.WARNING


def test_get_logger_returns_named_logger():
    logger = get_logger("applebites.services.assessments")
    assert logger.name == "applebites.services.assessments"
    assert logger is logging.getLogger("applebites.services.assessments")


def test_format_has_four_fields():
    assert LOG_FORMAT.count(" | ") == 3

"""
logging.py — Logging Setup for the Valuation Backend

Purpose:
- One format for every record the backend writes: request lines from the
  middleware in main.py, assessment creation, report generation and CRM
  export retries.
- Keep third-party HTTP clients (requests/urllib3, httpx, openai) at WARNING
  so per-request chatter does not drown assessment logs.

Format: timestamp | level | module | message

`configure_logging()` runs once, from main.py or a script's `main()`.
Modules call `get_logger(__name__)`.
"""

import logging
from typing import Iterable

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai")


def configure_logging(level: str = "INFO", quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    """
    Configure the root logger.

    Parameters:
        level (str): "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL";
            unknown names fall back to INFO
        quiet: logger names capped at WARNING unless `level` is DEBUG
    """
    resolved = getattr(logging, str(level).upper(), logging.INFO)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(level=resolved, format=LOG_FORMAT)

    if resolved > logging.DEBUG:
        for name in quiet:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging initialized with level %s", logging.getLevelName(resolved))


def get_logger(name: str) -> logging.Logger:
    """
    In any module:
        from applebites.core.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)

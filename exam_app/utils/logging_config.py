"""Logging configuration helpers for the exam application."""

from __future__ import annotations

import logging
import os
from logging import Logger


def configure_logging(level: str | None = None) -> Logger:
    """Configure basic logging for the application and return the root logger."""
    logging.basicConfig(
        level=(level or os.getenv("EXAM_LOG_LEVEL") or "INFO").upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("exam_app")

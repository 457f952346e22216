"""
Structured logging helpers for scraping workflows.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

_REDACTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"([A-Z0-9_]*API_KEY)\s*[=:]\s*[^\s,;\"'}]+", re.IGNORECASE), r"\1=[REDACTED]"),
    (re.compile(r"(bearer)\s+[A-Za-z0-9._~+/-]+=*", re.IGNORECASE), r"\1 [REDACTED]"),
    (re.compile(r"\b(secret|token|password)\s*[=:]\s*[^\s,;\"'}]+", re.IGNORECASE), r"\1=[REDACTED]"),
)


def redact_sensitive(text: str) -> str:
    """
    Mask credential-looking substrings before they reach a log sink.
    """

    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {
        "event": event,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **fields,
    }
    logger.log(level, redact_sensitive(json.dumps(payload, default=str, sort_keys=True)))


def log_error(logger: logging.Logger, error: BaseException, **context: Any) -> None:
    log_event(
        logger,
        logging.ERROR,
        "error_occurred",
        error_class=type(error).__name__,
        error_message=str(error),
        **context,
    )


def log_rate_limit(
    logger: logging.Logger,
    *,
    service: str,
    retry_after: float | None = None,
    **context: Any,
) -> None:
    log_event(
        logger,
        logging.WARNING,
        "rate_limit_encountered",
        service=service,
        retry_after_seconds=retry_after,
        **context,
    )

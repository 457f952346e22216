"""
Typed errors raised by source clients.

Callers branch on these: ``RateLimitError`` means "try again later",
``FetchError`` (and its ``ParseError`` subclass) means the source failed.
"""

from __future__ import annotations


class SourceError(Exception):
    """Base exception for external source failures."""


class FetchError(SourceError):
    """Raised on transport failures or non-success HTTP responses."""


class ParseError(FetchError):
    """Raised when a source payload does not match the expected structure."""


class RateLimitError(SourceError):
    """
    Raised when the request budget for a source is exhausted.

    ``retry_after_seconds`` is a hint for the caller's reschedule delay; it is
    ``None`` when neither the local limiter nor the source provided one.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str,
        retry_after_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.retry_after_seconds = retry_after_seconds


def describe_error(exc: BaseException) -> str:
    """
    Render an exception as ``"<ErrorClass>: <message>"`` for audit records.
    """

    message = str(exc)
    name = type(exc).__name__
    return f"{name}: {message}" if message else name

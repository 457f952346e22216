"""Structured log lines and secret redaction."""

from __future__ import annotations

import json
import logging
import unittest

from app.scraping.errors import FetchError, RateLimitError, describe_error
from app.scraping.logging_utils import log_error, log_event, log_rate_limit, redact_sensitive


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


class StructuredLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.logger = logging.getLogger("tests.structured")
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        self.handler = _ListHandler()
        self.logger.addHandler(self.handler)

    def tearDown(self) -> None:
        self.logger.removeHandler(self.handler)

    def _payload(self, index: int = -1) -> dict:
        return json.loads(self.handler.records[index].getMessage())

    def test_log_event_emits_one_json_line(self) -> None:
        log_event(self.logger, logging.INFO, "scrape_started", execution_id=7)

        payload = self._payload()
        self.assertEqual(payload["event"], "scrape_started")
        self.assertEqual(payload["execution_id"], 7)
        self.assertIn("timestamp", payload)
        self.assertEqual(self.handler.records[-1].levelno, logging.INFO)

    def test_log_error_carries_class_and_message(self) -> None:
        log_error(self.logger, FetchError("HTTP error 500"), commander_id=3)

        payload = self._payload()
        self.assertEqual(payload["event"], "error_occurred")
        self.assertEqual(payload["error_class"], "FetchError")
        self.assertEqual(payload["error_message"], "HTTP error 500")
        self.assertEqual(payload["commander_id"], 3)
        self.assertEqual(self.handler.records[-1].levelno, logging.ERROR)

    def test_log_rate_limit_is_a_warning(self) -> None:
        log_rate_limit(self.logger, service="edhrec", retry_after=2.0)

        payload = self._payload()
        self.assertEqual(payload["event"], "rate_limit_encountered")
        self.assertEqual(payload["retry_after_seconds"], 2.0)
        self.assertEqual(self.handler.records[-1].levelno, logging.WARNING)

    def test_secrets_are_redacted_in_fields(self) -> None:
        log_event(self.logger, logging.INFO, "request", url="https://x.test/?token=abc123", note="api_key=zzz")

        message = self.handler.records[-1].getMessage()
        self.assertNotIn("abc123", message)
        self.assertNotIn("zzz", message)


class RedactionTests(unittest.TestCase):
    def test_bearer_tokens(self) -> None:
        self.assertEqual(redact_sensitive("Authorization: Bearer abc.def-123"), "Authorization: Bearer [REDACTED]")

    def test_env_style_api_keys(self) -> None:
        self.assertEqual(redact_sensitive("SCRYFALL_API_KEY=s3cr3t"), "SCRYFALL_API_KEY=[REDACTED]")

    def test_password_pairs(self) -> None:
        self.assertEqual(redact_sensitive("password: hunter2"), "password=[REDACTED]")

    def test_plain_text_is_untouched(self) -> None:
        self.assertEqual(redact_sensitive("Fetched 20 commanders"), "Fetched 20 commanders")


class DescribeErrorTests(unittest.TestCase):
    def test_with_message(self) -> None:
        self.assertEqual(describe_error(FetchError("boom")), "FetchError: boom")

    def test_without_message(self) -> None:
        self.assertEqual(describe_error(RateLimitError("", source="edhrec")), "RateLimitError")


if __name__ == "__main__":
    unittest.main()

"""Unit tests for JSON log lines and request id binding."""

import json
import logging

from hookgate.core.request_context import get_request_id, request_id_context
from hookgate.core.structured_logging import log_json

logger = logging.getLogger("hookgate.tests.logging")


def _last_record(caplog) -> dict:
    return json.loads(caplog.records[-1].getMessage())


def test_request_id_is_bound_and_restored():
    assert get_request_id() is None

    with request_id_context("req-1") as outer:
        assert outer == "req-1"
        with request_id_context() as inner:
            assert inner and inner != "req-1"
            assert get_request_id() == inner
        assert get_request_id() == "req-1"

    assert get_request_id() is None


def test_log_line_carries_request_id_and_drops_empty_fields(caplog):
    caplog.set_level(logging.INFO, logger=logger.name)

    with request_id_context("req-42"):
        log_json(logger, logging.INFO, "webhook_created", webhook_id=7, error=None)

    record = _last_record(caplog)
    assert record["event"] == "webhook_created"
    assert record["level"] == "INFO"
    assert record["request_id"] == "req-42"
    assert record["webhook_id"] == 7
    assert "error" not in record


def test_disabled_level_is_not_emitted(caplog):
    caplog.set_level(logging.WARNING, logger=logger.name)

    log_json(logger, logging.INFO, "ignored")

    assert caplog.records == []

"""
Unit tests for job-context logging.
"""

import json
import logging
import sys

from mediaq.features.logging import (
    ContextFilter,
    JSONFormatter,
    job_context,
    job_logging_context,
    setup_logging,
)


def make_record(message="hello", exc_info=None):
    return logging.LogRecord(
        name="mediaq.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=exc_info,
    )


def test_context_is_reset_after_block():
    with job_logging_context("c-1", 42, "m-1") as ctx:
        assert job_context.get() is ctx
    assert job_context.get() is None


def test_filter_adds_placeholders_outside_job():
    record = make_record()
    assert ContextFilter().filter(record) is True
    assert record.correlation_id == "-"
    assert record.media_id == "-"


def test_filter_copies_job_identifiers():
    record = make_record()
    with job_logging_context("c-1", 42):
        ContextFilter().filter(record)
    assert record.correlation_id == "c-1"
    assert record.media_id == 42


def test_json_formatter_includes_job_context():
    with job_logging_context("c-2", 7, "m-2"):
        payload = json.loads(JSONFormatter().format(make_record("processing")))

    assert payload["message"] == "processing"
    assert payload["level"] == "INFO"
    assert payload["job_context"] == {"correlation_id": "c-2", "media_id": 7, "message_id": "m-2"}


def test_json_formatter_serializes_exceptions():
    try:
        raise ValueError("bad thumbnail")
    except ValueError:
        record = make_record("failed", exc_info=sys.exc_info())

    payload = json.loads(JSONFormatter().format(record))

    assert payload["exception"]["type"] == "ValueError"
    assert payload["exception"]["message"] == "bad thumbnail"
    assert payload["job_context"] is None


def test_setup_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("DEBUG", "structured")
        setup_logging("WARNING", "simple")

        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert logging.getLogger("botocore").level == logging.WARNING
        assert any(isinstance(f, ContextFilter) for f in root.handlers[0].filters)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import logging
import logging.handlers

import pytest

from hapf_core.logconfig import (
    JSON_FORMAT,
    RequestContext,
    RequestContextFilter,
    configure_logging,
)


def _capture_record(message: str) -> logging.LogRecord:
    """Emit one log record through a Capture handler and return it."""
    records = []

    class Capture(logging.Handler):
        def emit(self, record: logging.LogRecord):
            records.append(record)

    logger = logging.getLogger("test_logconfig_capture")
    logger.setLevel(logging.DEBUG)
    h = Capture()
    h.addFilter(RequestContextFilter())
    logger.addHandler(h)
    try:
        logger.info(message)
    finally:
        logger.removeHandler(h)
    return records[0]


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_json_format_contains_request_fields():
    assert "request_id" in JSON_FORMAT
    assert "endpoint" in JSON_FORMAT
    assert "duration_ms" in JSON_FORMAT


def test_request_context_filter_defaults_to_empty():
    RequestContext.clear()
    record = _capture_record("hello")
    assert record.request_id == ""
    assert record.endpoint == ""
    assert record.duration_ms == ""


def test_request_context_filter_injects_values():
    RequestContext.set("req-123", "/v0/analyze", "42")
    try:
        record = _capture_record("hello")
        assert record.request_id == "req-123"
        assert record.endpoint == "/v0/analyze"
        assert record.duration_ms == "42"
    finally:
        RequestContext.clear()


def test_request_context_clear_resets_to_empty():
    RequestContext.set("req-999", "/healthz/live", "5")
    RequestContext.clear()
    record = _capture_record("hello")
    assert record.request_id == ""
    assert record.endpoint == ""
    assert record.duration_ms == ""


def test_configure_logging_sets_level(restore_root_logger):
    configure_logging("debug")
    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("uvicorn.access").level == logging.WARNING


def test_configure_logging_writes_file(restore_root_logger, tmp_path):
    log_file = tmp_path / "logs" / "hapf.log"
    configure_logging("INFO", json_format=True, log_file=str(log_file))
    logging.getLogger("hapf.test").info("written")
    for handler in restore_root_logger.handlers:
        handler.flush()
    content = log_file.read_text()
    assert '"msg": "written"' in content
    assert '"endpoint": ""' in content


def test_configure_logging_rotates(restore_root_logger, tmp_path):
    configure_logging(log_file=str(tmp_path / "hapf.log"), max_bytes=1024, backup_count=2)
    rotating = [
        h
        for h in restore_root_logger.handlers
        if isinstance(h, logging.handlers.RotatingFileHandler)
    ]
    assert len(rotating) == 1
    assert rotating[0].maxBytes == 1024
    assert rotating[0].backupCount == 2

"""Test the logging setup and what the services log."""

import logging

from railbook.logging import (
    CorrelationFilter,
    LogContext,
    get_logger,
    set_correlation_id,
    setup_logging,
)
from railbook.session_service import SessionService


def test_get_logger_namespaces_names():
    assert get_logger("railbook.payment").name == "railbook.payment"
    assert get_logger("payment").name == "railbook.payment"


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "logs" / "app.log"
    logger = setup_logging(level="DEBUG", log_file=str(log_file), console=False)
    try:
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        get_logger("test").info("hello file")
        for handler in logger.handlers:
            handler.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []


def test_correlation_filter_stamps_records():
    set_correlation_id("abc12345")
    record = logging.LogRecord("railbook", logging.INFO, __file__, 1, "msg", None, None)
    assert CorrelationFilter().filter(record)
    assert record.correlation_id == "abc12345"


def test_log_context_reports_start_and_completion(caplog):
    with caplog.at_level(logging.INFO, logger="railbook"):
        with LogContext("payment", train="12301") as ctx:
            ctx.log("processing", fare=5600)
    messages = [r.getMessage() for r in caplog.records]
    assert messages[0] == "Starting payment: train=12301"
    assert "processing (fare=5600)" in messages
    assert messages[-1].startswith("Completed payment in ")


def test_corrupted_session_is_logged_as_warning(caplog, store):
    store.set("railway_user", "not json")
    with caplog.at_level(logging.WARNING, logger="railbook"):
        SessionService(store, delay_seconds=0)
    assert any(
        r.levelno == logging.WARNING and "railway_user" in r.getMessage()
        for r in caplog.records
    )

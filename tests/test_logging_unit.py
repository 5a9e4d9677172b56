"""Unit tests for structured logging."""

import json
import logging
import sys

from rss_chat_notifier.logging_config import (
    ExecutionLogger,
    StructuredFormatter,
    create_execution_logger,
    setup_structured_logging,
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="rss_chat_notifier.main",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Item delivered to %s",
        args=("slack",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Unit tests for StructuredFormatter."""

    def test_base_fields(self):
        entry = json.loads(StructuredFormatter().format(make_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "rss_chat_notifier.main"
        assert entry["message"] == "Item delivered to slack"
        assert entry["line"] == 10
        assert "timestamp" in entry

    def test_context_fields(self):
        record = make_record(
            execution_id="exec_1",
            component="main",
            target="discord",
            item_title="Nuove funzionalità 🆕",
            metrics={"messages_sent": 2},
        )

        formatted = StructuredFormatter().format(record)
        entry = json.loads(formatted)

        assert entry["execution_id"] == "exec_1"
        assert entry["component"] == "main"
        assert entry["target"] == "discord"
        assert entry["metrics"] == {"messages_sent": 2}
        assert "Nuove funzionalità 🆕" in formatted  # not ASCII-escaped

    def test_exception_info(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        entry = json.loads(StructuredFormatter().format(record))

        assert "RuntimeError: boom" in entry["exception"]


class TestExecutionLogger:
    """Unit tests for ExecutionLogger."""

    def test_generated_execution_id(self):
        logger = create_execution_logger("feed_processor")

        assert isinstance(logger, ExecutionLogger)
        assert logger.execution_id.startswith("exec_")
        assert logger.logger.name == "rss_chat_notifier.feed_processor"

    def test_context_is_attached(self, caplog):
        logger = create_execution_logger("webhook_publisher", "exec_42")

        with caplog.at_level(logging.INFO, logger="rss_chat_notifier"):
            logger.log_delivery("Release 1.0", "slack")

        [record] = caplog.records
        assert record.execution_id == "exec_42"
        assert record.component == "webhook_publisher"
        assert record.target == "slack"
        assert record.getMessage() == "Item delivered to slack: Release 1.0"

    def test_failed_delivery_logs_error(self, caplog):
        logger = create_execution_logger("main", "exec_42")

        with caplog.at_level(logging.INFO, logger="rss_chat_notifier"):
            logger.log_delivery("Release 1.0", "discord", success=False)

        assert caplog.records[0].levelno == logging.ERROR

    def test_execution_end_reports_duration(self, caplog):
        logger = create_execution_logger("main", "exec_42")

        with caplog.at_level(logging.INFO, logger="rss_chat_notifier"):
            logger.log_execution_start()
            logger.log_execution_end(success=False, error="boom")

        end = caplog.records[-1]
        assert end.levelno == logging.ERROR
        assert end.execution_success is False
        assert end.execution_duration_seconds >= 0


def test_setup_structured_logging_installs_json_handler():
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    try:
        setup_structured_logging("debug")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert logging.getLogger("rss_chat_notifier.main").level == logging.DEBUG
    finally:
        root.handlers[:] = original_handlers
        root.setLevel(original_level)

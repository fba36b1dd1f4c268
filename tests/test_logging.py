"""
Tests for structured logging
"""

import json
import logging
import sys

from koperasi.logging_config import (
    JSONFormatter, CorrelationFilter, setup_logging, get_logger, log_action,
    bind_correlation_id, reset_correlation_id, current_correlation_id
)


class CapturingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestJSONFormatter:
    """Test JSONFormatter output"""

    def _record(self, **attrs):
        record = logging.LogRecord("koperasi.voting", logging.INFO, __file__, 1, "Vote recorded", (), None)
        for key, value in attrs.items():
            setattr(record, key, value)
        return record

    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(self._record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "koperasi.voting"
        assert entry["message"] == "Vote recorded"
        assert "timestamp" in entry
        assert "user_id" not in entry

    def test_structured_fields(self):
        entry = json.loads(JSONFormatter().format(self._record(
            user_id="1", action="submit_vote", resource="meeting:3",
            extra={"agenda_item_id": "agenda-2"}
        )))

        assert entry["user_id"] == "1"
        assert entry["action"] == "submit_vote"
        assert entry["resource"] == "meeting:3"
        assert entry["extra"] == {"agenda_item_id": "agenda-2"}

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("koperasi", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestLogAction:
    """Test log_action and setup_logging"""

    def setup_method(self):
        self.logger = get_logger("koperasi.test_log_action")
        self.logger.setLevel(logging.INFO)
        self.handler = CapturingHandler()
        self.logger.addHandler(self.handler)

    def teardown_method(self):
        self.logger.removeHandler(self.handler)

    def test_attaches_structured_fields(self):
        log_action(self.logger, "info", "Meeting closed", user_id="admin",
                   action="close_meeting", resource="meeting:1", extra={"attendees": 3})

        record = self.handler.records[0]
        assert record.levelno == logging.INFO
        assert record.getMessage() == "Meeting closed"
        assert record.user_id == "admin"
        assert record.action == "close_meeting"
        assert record.extra == {"attendees": 3}

    def test_respects_level(self):
        log_action(self.logger, "debug", "noise")
        assert self.handler.records == []

    def test_setup_logging_replaces_handlers(self):
        logger = setup_logging(level="warning", logger_name="koperasi.test_setup", log_format="text")
        logger = setup_logging(level="debug", logger_name="koperasi.test_setup")

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.DEBUG
        assert not logger.propagate

    def test_setup_logging_to_file(self, tmp_path):
        path = tmp_path / "koperasi.log"
        logger = setup_logging(logger_name="koperasi.test_file", log_file=str(path))

        log_action(logger, "info", "Attendance recorded", action="record_attendance")
        logger.handlers[0].flush()

        entry = json.loads(path.read_text().strip())
        assert entry["action"] == "record_attendance"
        logger.handlers[0].close()


class TestCorrelationId:
    """Test correlation id binding"""

    def test_filter_stamps_bound_id(self):
        record = logging.LogRecord("koperasi", logging.INFO, __file__, 1, "x", (), None)
        token = bind_correlation_id("req-7")
        try:
            CorrelationFilter().filter(record)
        finally:
            reset_correlation_id(token)

        assert record.correlation_id == "req-7"
        assert current_correlation_id() is None

    def test_explicit_id_wins(self):
        record = logging.LogRecord("koperasi", logging.INFO, __file__, 1, "x", (), None)
        record.correlation_id = "explicit"
        token = bind_correlation_id("bound")
        try:
            CorrelationFilter().filter(record)
        finally:
            reset_correlation_id(token)

        assert record.correlation_id == "explicit"

    def test_bound_id_reaches_json_output(self, tmp_path):
        path = tmp_path / "requests.log"
        logger = setup_logging(logger_name="koperasi.test_correlation", log_file=str(path))
        token = bind_correlation_id("req-99")
        try:
            log_action(logger, "info", "Vote recorded", action="submit_vote")
        finally:
            reset_correlation_id(token)
        logger.handlers[0].flush()

        entry = json.loads(path.read_text().strip())
        assert entry["correlation_id"] == "req-99"
        logger.handlers[0].close()

    def test_text_format_includes_correlation_id(self):
        handler = setup_logging(logger_name="koperasi.test_text", log_format="text").handlers[0]
        record = logging.LogRecord("koperasi.test_text", logging.INFO, __file__, 1, "hello", (), None)
        token = bind_correlation_id("abc")
        try:
            handler.filter(record)
        finally:
            reset_correlation_id(token)

        assert "[abc] hello" in handler.format(record)

"""Tests for logging configuration."""

import io
import json
import logging
import sys

import pytest

from cloudobject.logging_config import JSONFormatter, TextFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        record = logging.LogRecord("cloudobject.x", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "cloudobject.x"
        assert entry["message"] == "hello world"
        assert "timestamp" in entry

    def test_extra_fields(self):
        record = logging.LogRecord("cloudobject.x", logging.DEBUG, __file__, 1, "GET", (), None)
        record.method = "GET"
        record.status = 200
        record.container = "photos"
        record.object = "cat.jpg"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["method"] == "GET"
        assert entry["status"] == 200
        assert entry["container"] == "photos"
        assert entry["object"] == "cat.jpg"
        assert "path" not in entry

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_sets_level_and_single_handler(self, restore_root_logger):
        configure_logging("DEBUG", "text")
        configure_logging("WARNING", "text")
        assert restore_root_logger.level == logging.WARNING
        assert len(restore_root_logger.handlers) == 1

    def test_json_format(self, restore_root_logger):
        configure_logging("INFO", "json")
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        configure_logging("CHATTY")
        assert restore_root_logger.level == logging.INFO

    def test_writes_to_given_stream(self, restore_root_logger):
        out = io.StringIO()
        configure_logging("INFO", "json", stream=out)
        logging.getLogger("cloudobject.test").info("stored", extra={"container": "c", "object": "o"})
        entry = json.loads(out.getvalue().splitlines()[-1])
        assert entry["message"] == "stored"
        assert entry["container"] == "c"
        assert entry["object"] == "o"

    def test_quiets_transport_loggers(self, restore_root_logger):
        configure_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestTextFormatter:
    """Tests for TextFormatter."""

    def test_appends_object_context(self):
        record = logging.LogRecord("cloudobject.x", logging.INFO, __file__, 1, "wrote", (), None)
        record.container = "photos"
        record.object = "cat.jpg"
        assert TextFormatter().format(record).endswith("wrote [photos/cat.jpg]")

    def test_plain_without_context(self):
        record = logging.LogRecord("cloudobject.x", logging.INFO, __file__, 1, "hello", (), None)
        assert TextFormatter().format(record).endswith("INFO cloudobject.x: hello")

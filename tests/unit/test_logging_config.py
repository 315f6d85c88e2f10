"""
Unit tests for utils.logging

Tests JSON and console formatting and logging setup from arguments and
environment variables.
"""

import json
import logging
import logging.handlers
import os
import sys
from unittest.mock import patch

from utils.logging import ConsoleFormatter, JSONFormatter, configure_from_env, setup_logging


def make_record(msg: str = "Test message", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test_logger",
        level=logging.INFO,
        pathname="/path/to/test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test JSONFormatter class"""

    def test_format_basic_log_record(self):
        # Arrange
        formatter = JSONFormatter()

        # Act
        data = json.loads(formatter.format(make_record()))

        # Assert
        assert data["level"] == "INFO"
        assert data["logger"] == "test_logger"
        assert data["message"] == "Test message"
        assert data["app"] == "statmerge"
        assert data["source"] == {"file": "/path/to/test.py", "line": 42, "function": None}
        assert "hostname" in data
        assert "context" not in data

    def test_without_hostname(self):
        data = json.loads(JSONFormatter(include_hostname=False).format(make_record()))
        assert "hostname" not in data

    def test_extra_context(self):
        record = make_record(table="statistics", imported=3)

        data = json.loads(JSONFormatter().format(record))

        assert data["context"] == {"table": "statistics", "imported": 3}

    def test_exception_info(self):
        try:
            raise ValueError("bad row")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "bad row"


class TestConsoleFormatter:
    """Test ConsoleFormatter class"""

    def test_plain_output_with_context(self):
        formatter = ConsoleFormatter(use_colors=False)

        output = formatter.format(make_record(table="statistics"))

        assert "[INFO] test_logger: Test message" in output
        assert output.endswith("[table=statistics]")

    @patch("sys.stderr")
    def test_levelname_restored_after_coloring(self, mock_stderr):
        mock_stderr.isatty.return_value = True
        formatter = ConsoleFormatter(use_colors=True)
        record = make_record()

        output = formatter.format(record)

        assert "\033[32mINFO\033[0m" in output
        assert record.levelname == "INFO"


class TestSetupLogging:
    """Test setup_logging"""

    def test_sets_level(self):
        setup_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_lowercase_level(self):
        setup_logging("warning")
        assert logging.getLogger().level == logging.WARNING

    def test_json_console(self):
        setup_logging("INFO", json_format=True)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, JSONFormatter)

    def test_file_output(self, tmp_path):
        log_file = tmp_path / "logs" / "statmerge.log"

        setup_logging("INFO", log_file=str(log_file), console_output=False)
        logging.getLogger("statmerge.test").info("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "written to file" in log_file.read_text()
        assert isinstance(logging.getLogger().handlers[0], logging.handlers.RotatingFileHandler)

    def test_configure_from_env(self, tmp_path):
        env = {
            "LOG_LEVEL": "ERROR",
            "LOG_JSON": "true",
            "LOG_CONSOLE": "false",
            "LOG_FILE": str(tmp_path / "env.log"),
        }
        with patch.dict(os.environ, env):
            configure_from_env()

        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

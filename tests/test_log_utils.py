import logging
import os
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

from rich.logging import RichHandler

from openjdk_api import log_utils


def _own_handlers(kind):
    return [h for h in log_utils.logger.handlers if isinstance(h, kind)]


class TestLogUtils:
    """Test suite for log_utils module."""

    def setup_method(self):
        """Reset logger state before each test."""
        for handler in log_utils.logger.handlers[:]:
            log_utils.logger.removeHandler(handler)
            handler.close()

        log_utils._file_handler = None
        log_utils._initialize_logger()

    def teardown_method(self):
        if log_utils._file_handler is not None:
            log_utils.logger.removeHandler(log_utils._file_handler)
            log_utils._file_handler.close()
            log_utils._file_handler = None

    def test_logger_initialization(self):
        """Test that logger is properly initialized."""
        assert log_utils.logger.name == "openjdk_api"
        assert not log_utils.logger.propagate
        assert len(_own_handlers(RichHandler)) == 1

    def test_logger_initialization_with_env_var(self):
        """Test logger initialization with environment variable."""
        with patch.dict(os.environ, {"OPENJDK_API_LOG_LEVEL": "DEBUG"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.DEBUG
            assert _own_handlers(RichHandler)[0].level == logging.DEBUG

    def test_logger_initialization_with_invalid_env_var(self):
        """Test logger initialization with invalid environment variable."""
        with patch.dict(os.environ, {"OPENJDK_API_LOG_LEVEL": "LOUD"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.INFO

    def test_set_log_level_valid(self):
        log_utils.set_log_level("debug")
        assert log_utils.logger.level == logging.DEBUG

        log_utils.set_log_level("WARNING")
        assert log_utils.logger.level == logging.WARNING
        assert _own_handlers(RichHandler)[0].level == logging.WARNING

    def test_set_log_level_invalid(self):
        original_level = log_utils.logger.level

        log_utils.set_log_level("LOUD")

        assert log_utils.logger.level == original_level

    def test_add_file_logging(self, tmp_path):
        log_utils.add_file_logging(tmp_path / "logs", "DEBUG")

        log_file = tmp_path / "logs" / "openjdk-api.log"
        assert log_file.exists()
        assert log_utils._file_handler in log_utils.logger.handlers
        assert log_utils._file_handler.level == logging.DEBUG

    def test_add_file_logging_replaces_previous_handler(self, tmp_path):
        log_utils.add_file_logging(tmp_path / "first")
        first = log_utils._file_handler

        log_utils.add_file_logging(tmp_path / "second", "NOPE")

        assert first not in log_utils.logger.handlers
        assert log_utils._file_handler.level == logging.INFO
        assert len(_own_handlers(RichHandler)) == 1
        assert _own_handlers(RotatingFileHandler) == [log_utils._file_handler]

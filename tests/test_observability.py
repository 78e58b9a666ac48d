"""
Tests for logging setup.
"""

import logging
from pathlib import Path

import pytest

from husgit.core.observability.logging_config import _parse_level, resolve_level, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestResolveLevel:
    def test_flags_win(self):
        assert resolve_level(debug=True, env_level="ERROR") == "DEBUG"
        assert resolve_level(verbose=True) == "INFO"
        assert resolve_level(quiet=True) == "ERROR"

    def test_env_then_default(self):
        assert resolve_level(env_level="INFO") == "INFO"
        assert resolve_level() == "WARNING"


class TestParseLevel:
    def test_known(self):
        assert _parse_level("debug") == logging.DEBUG

    def test_unknown_falls_back(self):
        assert _parse_level("LOUD") == logging.WARNING
        assert _parse_level(None) == logging.WARNING


class TestSetupLogging:
    def test_console_only(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_file_handler_lowers_root_level(self, tmp_path: Path):
        log_file = tmp_path / "husgit.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert root.level == logging.DEBUG

        logging.getLogger("husgit.test").debug("written to file only")
        for handler in root.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

    def test_noisy_loggers_quieted(self):
        setup_logging("INFO")
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_console_format_follows_level(self):
        setup_logging("DEBUG")
        assert "%(lineno)d" in logging.getLogger().handlers[0].formatter._fmt
        setup_logging("INFO")
        assert logging.getLogger().handlers[0].formatter._fmt == "%(asctime)s [%(name)s] %(message)s"
        setup_logging("WARNING")
        assert logging.getLogger().handlers[0].formatter._fmt == "%(message)s"

    def test_replaces_previous_handlers(self):
        setup_logging("INFO")
        setup_logging("ERROR")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.ERROR

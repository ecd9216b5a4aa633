# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the structured JSON logger.

We verify:
  - output is valid JSON
  - all mandatory fields are present (ts, level, module, msg)
  - log levels filter correctly
  - extra context and exceptions get merged into the JSON
"""

import json
import logging
from pathlib import Path

import pytest

from spm_release.logging.logger import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_loggers() -> None:
    """
    Clear test logger handlers so get_logger's handler-stacking guard
    doesn't leak state between tests.
    """
    yield  # type: ignore[misc]
    for name in list(logging.Logger.manager.loggerDict):
        if name.startswith("spm_release.test"):
            logger = logging.getLogger(name)
            logger.handlers.clear()
    configure_logging("INFO")


class TestJsonOutput:
    def test_mandatory_fields_are_present(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("spm_release.test.fields", log_level="INFO")
        logger.info("test message")
        captured = capsys.readouterr()

        parsed = json.loads(captured.out.strip())
        assert "ts" in parsed
        assert parsed["level"] == "INFO"
        assert parsed["module"] == "spm_release.test.fields"
        assert parsed["msg"] == "test message"

    def test_extra_fields_are_included(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("spm_release.test.extra", log_level="DEBUG")
        logger.info("uploaded", extra={"asset": "foo.tar.gz", "bytes": 1024})
        captured = capsys.readouterr()

        parsed = json.loads(captured.out.strip())
        assert parsed["asset"] == "foo.tar.gz"
        assert parsed["bytes"] == 1024

    def test_exception_info_is_included(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("spm_release.test.exc", log_level="INFO")
        try:
            raise RuntimeError("upload exploded")
        except RuntimeError:
            logger.error("failed", exc_info=True)
        captured = capsys.readouterr()

        parsed = json.loads(captured.out.strip())
        assert "upload exploded" in parsed["exc"]


class TestLogLevelFiltering:
    def test_debug_messages_hidden_at_info_level(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = get_logger("spm_release.test.level_filter", log_level="INFO")
        logger.debug("this should not appear")
        captured = capsys.readouterr()
        assert captured.out.strip() == ""

    def test_repeat_call_updates_level(self, capsys: pytest.CaptureFixture[str]) -> None:
        get_logger("spm_release.test.relevel", log_level="INFO")
        logger = get_logger("spm_release.test.relevel", log_level="DEBUG")
        logger.debug("now visible")
        captured = capsys.readouterr()

        assert len(logger.handlers) == 1
        assert "now visible" in captured.out

    def test_configure_logging_applies_to_package_loggers(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        logger = get_logger("spm_release.test.configured", log_level="INFO")
        configure_logging("WARNING")
        logger.info("suppressed")
        logger.warning("kept")
        captured = capsys.readouterr()

        assert "suppressed" not in captured.out
        assert "kept" in captured.out


class TestFileOutput:
    def test_logs_are_written_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "release.log"
        logger = get_logger("spm_release.test.file_output", log_level="INFO", log_file=log_file)
        logger.info("file log test")

        parsed = json.loads(log_file.read_text(encoding="utf-8").strip())
        assert parsed["msg"] == "file log test"


class TestInvalidLogLevel:
    def test_invalid_level_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            get_logger("spm_release.test.invalid", log_level="INVALID")

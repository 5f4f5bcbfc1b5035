"""Tests for logging setup."""

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from btw.logging import configure_logging, get_logger


@pytest.fixture
def clean_logging() -> Iterator[None]:
    """Restore structlog and root logger state after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestLogging:
    """Test library-quiet defaults and configured output."""

    def test_info_events_silent_before_configuration(
        self, clean_logging: None, capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Library callers that never configure logging see no info lines."""
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
        logging.getLogger().setLevel(logging.WARNING)

        get_logger("btw.strategies.base").info("workflow_injected", target="claude")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "workflow_injected" not in captured.err

    def test_json_output_when_configured(
        self, clean_logging: None, capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Configured JSON logging writes one event per line to stderr."""
        configure_logging(force_json=True, level=logging.INFO)

        get_logger("btw.engine").info("workflow_injected", target="claude")

        captured = capsys.readouterr()
        assert captured.out == ""
        event = json.loads(captured.err.strip().splitlines()[-1])
        assert event["event"] == "workflow_injected"
        assert event["target"] == "claude"
        assert event["level"] == "info"

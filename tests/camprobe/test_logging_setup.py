"""Tests for logging setup module."""

from __future__ import annotations

import json
import logging

import pytest

from camprobe.logging_setup import configure_logging


@pytest.fixture(autouse=True)
def reset_logging_root() -> None:
    """Restore root logger handlers/levels after each test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level

    yield

    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in original_handlers:
        root.addHandler(handler)
    root.setLevel(original_level)
    logging.captureWarnings(False)


def test_configure_logging_writes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    """Log output goes to stderr so stdout stays reserved for results."""
    # Given: Logging configured at INFO
    configure_logging(log_level="INFO")

    # When: Logging a message
    logging.getLogger("camprobe.test").info("hello")

    # Then: The message appears on stderr only
    captured = capsys.readouterr()
    assert "hello" in captured.err
    assert captured.out == ""


def test_configure_logging_respects_level(capsys: pytest.CaptureFixture[str]) -> None:
    """Records below the console level are dropped."""
    configure_logging(log_level="warning")

    logging.getLogger("camprobe.test").info("quiet")
    logging.getLogger("camprobe.test").warning("loud")

    err = capsys.readouterr().err
    assert "quiet" not in err
    assert "loud" in err


def test_configure_logging_appends_extras_as_json(capsys: pytest.CaptureFixture[str]) -> None:
    """Values passed via extra= are appended as a JSON object."""
    # Given: A plain message format
    configure_logging(log_level="DEBUG", console_format="%(message)s")

    # When: Logging with structured context
    logging.getLogger("camprobe.test").info(
        "Discovered device", extra={"message_id": "uuid:1", "devices": 2}
    )

    # Then: The extras follow the message as sorted JSON
    line = capsys.readouterr().err.strip().splitlines()[-1]
    prefix = "Discovered device "
    assert line.startswith(prefix)
    assert json.loads(line[len(prefix) :]) == {"devices": 2, "message_id": "uuid:1"}

"""Unit tests for the femtologging helpers."""

from __future__ import annotations

import pytest

from creel.logging import (
    LogLevel,
    configure_logging,
    format_log_message,
    log_error,
    log_info,
    log_warning,
    normalize_log_level,
)


class _RecordingLogger:
    """Collects ``log`` calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        del stack_info
        self.calls.append((level, message, exc_info))
        return message


class TestNormalizeLogLevel:
    """Tests for normalize_log_level."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("debug", ("DEBUG", False)),
            ("  Warn ", ("WARN", False)),
            ("TRACE", ("TRACE", False)),
            (None, ("INFO", True)),
            ("", ("INFO", True)),
            ("verbose", ("INFO", True)),
        ],
    )
    def test_levels(self, raw: str | None, expected: tuple[str, bool]) -> None:
        """Known levels are upper-cased; anything else falls back to INFO."""
        assert normalize_log_level(raw) == expected

    def test_every_member_round_trips(self) -> None:
        """Each LogLevel value is accepted as-is."""
        for member in LogLevel:
            assert normalize_log_level(member.value) == (member.value, False)


def test_format_log_message() -> None:
    """Templates use percent-style interpolation."""
    assert format_log_message("%d events to %s", 3, "events") == "3 events to events"


@pytest.mark.parametrize(
    ("helper", "level"),
    [(log_info, "INFO"), (log_warning, "WARNING"), (log_error, "ERROR")],
)
def test_helpers_emit_formatted_messages(
    helper: object, level: str
) -> None:
    """Each helper pre-formats the message and forwards exc_info."""
    logger = _RecordingLogger()
    error = RuntimeError("boom")

    helper(logger, "bucket=%s", "events", exc_info=error)  # type: ignore[operator]

    assert logger.calls == [(level, "bucket=events", error)]


def test_configure_logging_passes_normalised_level(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """basicConfig receives the normalised level and the force flag."""
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr("creel.logging.basicConfig", fake_basic_config)

    assert configure_logging("bogus", force=True) == ("INFO", True)
    assert captured == {"level": "INFO", "force": True}

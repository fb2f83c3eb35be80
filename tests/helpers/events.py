"""Builders for event records used across tests."""

from __future__ import annotations

import datetime as dt
import typing as typ

from creel.records import EventRecord

if typ.TYPE_CHECKING:
    import collections.abc as cabc

EXPORT_TIME = dt.datetime(2024, 7, 8, 12, 34, 56, 789_000, tzinfo=dt.UTC)


def fixed_clock(moment: dt.datetime = EXPORT_TIME) -> cabc.Callable[[], dt.datetime]:
    """Return a clock that always reports ``moment``."""
    return lambda: moment


def event(name: str | None, distinct_id: str = "u1", **fields: object) -> EventRecord:
    """Build a record with an event name, identity and extra fields."""
    payload: dict[str, object] = {}
    if name is not None:
        payload["event"] = name
    payload["distinct_id"] = distinct_id
    payload.update(fields)
    return EventRecord(payload)


def events(*names: str) -> list[EventRecord]:
    """Build one record per name, with distinct ids ``u1``, ``u2``, ..."""
    return [event(name, distinct_id=f"u{index}") for index, name in enumerate(names, 1)]

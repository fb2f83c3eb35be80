"""Event records handed to the export pipeline.

An ``EventRecord`` is an immutable, ordered mapping from field name to a
``FieldValue``. Payloads are deep-copied on construction so later mutation of
the caller's dictionaries never leaks into an export in flight.

Example:
>>> record = EventRecord.from_mapping({"event": "signup", "distinct_id": "u1"})
>>> record.event
'signup'
>>> list(record)
['event', 'distinct_id']

"""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt

from creel.errors import NaiveTimestampError, UnsupportedFieldTypeError

type FieldValue = (
    str | int | float | bool | None | list[FieldValue] | dict[str, FieldValue]
)
type EventBatch = cabc.Sequence[EventRecord]


def _normalise_value(value: object, path: str) -> FieldValue:
    match value:
        case None | bool() | int() | float() | str():
            return value
        case dt.datetime() if value.tzinfo is None:
            raise NaiveTimestampError(path)
        case dt.datetime():
            return value.astimezone(dt.UTC).isoformat()
        case cabc.Mapping():
            return {
                str(key): _normalise_value(item, f"{path}.{key}")
                for key, item in value.items()
            }
        case list() | tuple():
            return [
                _normalise_value(item, f"{path}[{index}]")
                for index, item in enumerate(value)
            ]
        case _:
            raise UnsupportedFieldTypeError(path, type(value).__name__)


class EventRecord(cabc.Mapping[str, FieldValue]):
    """Immutable mapping of event fields, in the order they were received."""

    __slots__ = ("_fields",)

    _fields: dict[str, FieldValue]

    def __init__(self, fields: cabc.Mapping[str, object] | None = None) -> None:
        """Normalise and copy ``fields``.

        Raises
        ------
        NaiveTimestampError
            If a datetime (at any depth) has no timezone.
        UnsupportedFieldTypeError
            If a value (at any depth) is not a string, number, boolean, None,
            datetime, mapping or list.

        """
        normalised = {
            str(name): _normalise_value(value, str(name))
            for name, value in (fields or {}).items()
        }
        object.__setattr__(self, "_fields", normalised)

    @classmethod
    def from_mapping(cls, fields: cabc.Mapping[str, object]) -> EventRecord:
        """Build a record from a decoded payload."""
        return cls(fields)

    def __getitem__(self, name: str) -> FieldValue:
        return self._fields[name]

    def __iter__(self) -> cabc.Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __setattr__(self, name: str, value: object) -> None:
        msg = "EventRecord is immutable"
        raise AttributeError(msg)

    def __repr__(self) -> str:
        return f"EventRecord({self._fields!r})"

    @property
    def event(self) -> str | None:
        """Return the event name, or ``None`` when the field is absent."""
        name = self._fields.get("event")
        return name if isinstance(name, str) else None

    @property
    def distinct_id(self) -> str | None:
        value = self._fields.get("distinct_id")
        return None if value is None else str(value)

    @property
    def identity(self) -> str | None:
        """Return ``person`` when present, falling back to ``distinct_id``."""
        person = self._fields.get("person")
        if isinstance(person, str) and person:
            return person
        return self.distinct_id

    def to_dict(self) -> dict[str, FieldValue]:
        """Return a shallow copy of the fields for encoding."""
        return dict(self._fields)


def batch_from_payloads(
    payloads: cabc.Iterable[cabc.Mapping[str, object]],
) -> list[EventRecord]:
    """Convert decoded payloads into an ordered batch of records."""
    return [EventRecord.from_mapping(payload) for payload in payloads]


__all__ = ["EventBatch", "EventRecord", "FieldValue", "batch_from_payloads"]

"""Event-name filtering applied before a batch is serialised.

Filters are configured as comma-separated strings at setup and compiled once
into a ``FilterSet``. The allow-list (``only``) takes precedence: when it has
members the deny-list (``ignore``) is not consulted.
"""

from __future__ import annotations

import dataclasses
import typing as typ

from creel.errors import ExportConfigError

if typ.TYPE_CHECKING:
    from creel.records import EventBatch, EventRecord


def parse_event_names(raw: str | None) -> frozenset[str]:
    """Split a comma-separated setting into trimmed, non-empty event names."""
    if not raw:
        return frozenset()
    return frozenset(name.strip() for name in raw.split(",") if name.strip())


@dataclasses.dataclass(frozen=True, slots=True)
class FilterSet:
    """Compiled allow/deny event-name sets."""

    ignore: frozenset[str] = frozenset()
    only: frozenset[str] = frozenset()

    @classmethod
    def from_settings(
        cls,
        *,
        events_to_ignore: str | None = None,
        events_to_export: str | None = None,
    ) -> FilterSet:
        """Compile the raw comma-separated settings.

        Raises
        ------
        ExportConfigError
            If ``events_to_export`` is set but holds nothing besides commas
            and whitespace.

        """
        only = parse_event_names(events_to_export)
        if events_to_export and not only:
            raise ExportConfigError.blank_export_list()
        return cls(ignore=parse_event_names(events_to_ignore), only=only)

    def includes(self, record: EventRecord) -> bool:
        """Return True when ``record`` should be exported."""
        name = record.event
        if self.only:
            return name in self.only
        return name not in self.ignore


def select_events(batch: EventBatch, filters: FilterSet) -> list[EventRecord]:
    """Return the records of ``batch`` that pass ``filters``, order preserved.

    An empty result means there is nothing to export; it is not an error.
    """
    return [record for record in batch if filters.includes(record)]


__all__ = ["FilterSet", "parse_event_names", "select_events"]

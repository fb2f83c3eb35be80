"""Emit structured observability events for batch exports.

This module defines event identifiers, failure categorisation and a logger
wrapper used by ``ExportPipeline`` to report skipped batches, upload
attempts, successes and failures.

Completion events carry the event count and a bounded sample of the most
common event names rather than every name in the batch.

Usage
-----
>>> event_logger = ExportEventLogger()
>>> event_logger.log_upload_started(bucket="events", key="k.jsonl", events=3)

"""

from __future__ import annotations

import collections
import enum
import typing as typ

from creel.errors import ErrorCategory
from creel.logging import get_logger, log_error, log_info
from creel.storage.errors import ObjectStoreError

if typ.TYPE_CHECKING:
    import datetime as dt

    from creel.records import EventRecord

logger = get_logger(__name__)

EVENT_NAME_SAMPLE_SIZE = 5
_HTTP_FORBIDDEN = 403
_HTTP_TOO_MANY_REQUESTS = 429
_HTTP_SERVICE_UNAVAILABLE = 503

_THROTTLING_CODES = frozenset(
    {"SlowDown", "Throttling", "ThrottlingException", "RequestLimitExceeded"}
)
_PERMISSION_CODES = frozenset(
    {"AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch", "KMS.AccessDenied"}
)


class ExportEventType(enum.StrEnum):
    """Structured log event types for batch exports."""

    BATCH_SKIPPED = "export.batch.skipped"
    UPLOAD_STARTED = "export.upload.started"
    UPLOAD_COMPLETED = "export.upload.completed"
    UPLOAD_FAILED = "export.upload.failed"


def _categorize_store_error(exc: ObjectStoreError) -> ErrorCategory:
    if exc.code in _THROTTLING_CODES or exc.status_code in {
        _HTTP_TOO_MANY_REQUESTS,
        _HTTP_SERVICE_UNAVAILABLE,
    }:
        return ErrorCategory.THROTTLED
    if exc.code in _PERMISSION_CODES or exc.status_code == _HTTP_FORBIDDEN:
        return ErrorCategory.PERMISSION
    if exc.code == "NetworkError":
        return ErrorCategory.NETWORK
    return ErrorCategory.STORAGE


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an upload failure for alert routing.

    Every category is retryable; the category only says why the upload
    failed.

    """
    match exc:
        case ObjectStoreError():
            return _categorize_store_error(exc)
        case TimeoutError():
            return ErrorCategory.TIMEOUT
        case ConnectionError():
            return ErrorCategory.NETWORK
        case PermissionError():
            return ErrorCategory.PERMISSION
        case _:
            return ErrorCategory.UNKNOWN


def sample_event_names(
    records: typ.Iterable[EventRecord], limit: int = EVENT_NAME_SAMPLE_SIZE
) -> str:
    """Return the ``limit`` most common event names as ``name:count`` pairs."""
    counts = collections.Counter(record.event or "<unnamed>" for record in records)
    return ",".join(f"{name}:{count}" for name, count in counts.most_common(limit))


def count_identities(records: typ.Iterable[EventRecord]) -> int:
    """Return how many distinct people or devices appear in ``records``."""
    return len({record.identity for record in records} - {None})


class ExportEventLogger:
    """Emit structured export events via femtologging."""

    def log_batch_skipped(self, *, received: int) -> None:
        """Log a batch whose events were all filtered out."""
        log_info(
            logger,
            "[%s] received=%d exported=0",
            ExportEventType.BATCH_SKIPPED,
            received,
        )

    def log_upload_started(self, *, bucket: str, key: str, events: int) -> None:
        """Log the single upload attempt made for a batch."""
        log_info(
            logger,
            "[%s] bucket=%s key=%s events=%d",
            ExportEventType.UPLOAD_STARTED,
            bucket,
            key,
            events,
        )

    def log_upload_completed(
        self,
        *,
        bucket: str,
        key: str,
        records: typ.Sequence[EventRecord],
        duration: dt.timedelta,
    ) -> None:
        """Log a successful upload with event and identity counts.

        Parameters
        ----------
        bucket
            Destination bucket.
        key
            Object key the batch was stored under.
        records
            Records contained in the uploaded object.
        duration
            Time spent waiting for the store.

        """
        log_info(
            logger,
            "[%s] bucket=%s key=%s events=%d identities=%d "
            "duration_seconds=%.3f top_events=%s",
            ExportEventType.UPLOAD_COMPLETED,
            bucket,
            key,
            len(records),
            count_identities(records),
            duration.total_seconds(),
            sample_event_names(records),
        )

    def log_upload_failed(
        self,
        *,
        bucket: str,
        key: str,
        events: int,
        error: BaseException,
        category: ErrorCategory,
    ) -> None:
        """Log a failed upload with error details.

        Parameters
        ----------
        bucket
            Destination bucket.
        key
            Object key the batch would have been stored under.
        events
            Number of events that were not stored.
        error
            The failure raised by the store (or the timeout/cancellation).
        category
            Result of :func:`categorize_error` for ``error``.

        """
        log_error(
            logger,
            "[%s] bucket=%s key=%s events=%d category=%s "
            "error_type=%s error_message=%s",
            ExportEventType.UPLOAD_FAILED,
            bucket,
            key,
            events,
            category,
            type(error).__name__,
            str(error),
            exc_info=error,
        )

"""Batch export pipeline: filter, serialise, compress, name and upload.

Each call to :meth:`ExportPipeline.export` handles one batch from start to
finish and makes at most one upload attempt. The only await point is the
upload itself. Every failure raised while uploading, including a timeout,
surfaces as ``RetryableExportError`` so the caller can redeliver the same
batch; the pipeline never retries on its own and keeps nothing between
calls.

Usage
-----
Build a context once at startup and export batches with it:

>>> from creel.export import ExportContext, ExportPipeline
>>> from creel.records import batch_from_payloads
>>>
>>> context = ExportContext.from_env()
>>> pipeline = ExportPipeline(context)
>>> batch = batch_from_payloads([{"event": "signup", "distinct_id": "u1"}])
>>> result = await pipeline.export(batch)
>>> result.events_exported
1

"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import datetime as dt
import os
import time
import typing as typ

from creel.common.time import utcnow
from creel.errors import ErrorCategory, RetryableExportError
from creel.export.compression import compress
from creel.export.config import BatchThresholds, ExportConfig
from creel.export.filters import FilterSet, select_events
from creel.export.keys import name_object_key, random_key_suffix
from creel.export.observability import ExportEventLogger, categorize_error
from creel.export.serialization import serialize_batch
from creel.storage.factory import create_object_store
from creel.storage.protocol import UploadDescriptor

if typ.TYPE_CHECKING:
    from creel.records import EventBatch, EventRecord
    from creel.storage.protocol import ObjectStore


@dc.dataclass(frozen=True, slots=True)
class ExportContext:
    """Immutable setup state shared by every export invocation.

    Attributes
    ----------
    config
        Export settings (bucket, prefix, format, compression, encryption).
    filters
        Compiled allow/deny event-name sets.
    store
        Object store the batches are uploaded to.
    thresholds
        Batch accumulation limits for the scheduler.

    """

    config: ExportConfig
    filters: FilterSet
    store: ObjectStore
    thresholds: BatchThresholds = dc.field(default_factory=BatchThresholds)

    @classmethod
    def from_env(cls, *, store: ObjectStore | None = None) -> ExportContext:
        """Resolve and validate the whole export setup from the environment.

        Parameters
        ----------
        store
            Object store to use instead of the one selected by
            ``CREEL_STORAGE_BACKEND``.

        Raises
        ------
        ExportConfigError
            If any setting is missing, contradictory or unrecognised.

        """
        resolved_store = store if store is not None else create_object_store()
        config = ExportConfig.from_env()
        filters = FilterSet.from_settings(
            events_to_ignore=os.environ.get("CREEL_EVENTS_TO_IGNORE"),
            events_to_export=os.environ.get("CREEL_EVENTS_TO_EXPORT"),
        )
        return cls(
            config=config,
            filters=filters,
            store=resolved_store,
            thresholds=BatchThresholds.from_env(),
        )


@dc.dataclass(frozen=True, slots=True)
class ExportResult:
    """Outcome of a successful export call.

    ``key`` is ``None`` and ``events_exported`` is zero when filtering left
    nothing to upload.
    """

    bucket: str
    key: str | None
    events_exported: int

    @property
    def uploaded(self) -> bool:
        """Return True when an object was stored."""
        return self.key is not None


def build_upload(
    records: EventBatch,
    config: ExportConfig,
    *,
    timestamp: dt.datetime,
    suffix: str | None = None,
) -> UploadDescriptor:
    """Serialise, compress and name ``records`` as one upload.

    Parameters
    ----------
    records
        Filtered, non-empty batch.
    config
        Export settings.
    timestamp
        Export time used for the key.
    suffix
        Optional random suffix for the key.

    Returns
    -------
    UploadDescriptor
        The object to hand to the store.

    """
    body = compress(serialize_batch(records, config.upload_format), config.compression)
    key = name_object_key(
        prefix=config.prefix,
        upload_format=config.upload_format,
        compression=config.compression,
        timestamp=timestamp,
        suffix=suffix,
    )
    server_side_encryption, kms_key_id = config.encryption_params
    return UploadDescriptor(
        bucket=config.bucket,
        key=key,
        body=body,
        content_type=config.upload_format.content_type,
        content_encoding=config.compression.content_encoding,
        server_side_encryption=server_side_encryption,
        sse_kms_key_id=kms_key_id,
    )


class ExportPipeline:
    """Export batches through one ``ExportContext``.

    Parameters
    ----------
    context
        Setup state resolved at startup.
    clock
        Returns the timezone-aware export time used for keys.
    suffix_source
        Returns the random key suffix when ``unique_keys`` is enabled.
    event_logger
        Structured event emitter; a default instance is created if omitted.

    """

    def __init__(
        self,
        context: ExportContext,
        *,
        clock: typ.Callable[[], dt.datetime] = utcnow,
        suffix_source: typ.Callable[[], str] = random_key_suffix,
        event_logger: ExportEventLogger | None = None,
    ) -> None:
        """Store the context and injectable collaborators."""
        self._context = context
        self._clock = clock
        self._suffix_source = suffix_source
        self._event_logger = event_logger or ExportEventLogger()

    @property
    def context(self) -> ExportContext:
        """Return the setup state this pipeline exports with."""
        return self._context

    async def export(self, batch: EventBatch) -> ExportResult:
        """Filter ``batch`` and upload what remains as one object.

        Returns
        -------
        ExportResult
            Upload identity and event count; a batch filtered down to
            nothing returns without contacting the store.

        Raises
        ------
        RetryableExportError
            If the upload fails or times out. The batch was not stored and
            should be redelivered.
        UsageError
            If the batch cannot be serialised.

        """
        config = self._context.config
        selected = select_events(batch, self._context.filters)
        if not selected:
            self._event_logger.log_batch_skipped(received=len(batch))
            return ExportResult(bucket=config.bucket, key=None, events_exported=0)

        suffix = self._suffix_source() if config.unique_keys else None
        upload = build_upload(selected, config, timestamp=self._clock(), suffix=suffix)
        await self._upload(upload, selected)
        return ExportResult(
            bucket=upload.bucket, key=upload.key, events_exported=len(selected)
        )

    async def _upload(
        self, upload: UploadDescriptor, records: list[EventRecord]
    ) -> None:
        self._event_logger.log_upload_started(
            bucket=upload.bucket, key=upload.key, events=len(records)
        )
        started = time.perf_counter()
        try:
            async with asyncio.timeout(self._context.config.upload_timeout_s):
                await self._context.store.put(upload)
        except asyncio.CancelledError as exc:
            self._log_failure(upload, records, exc, ErrorCategory.CANCELLED)
            raise
        except Exception as exc:  # noqa: BLE001 - all store failures are retryable
            category = categorize_error(exc)
            self._log_failure(upload, records, exc, category)
            raise RetryableExportError(
                bucket=upload.bucket,
                key=upload.key,
                events=len(records),
                category=category,
            ) from exc

        self._event_logger.log_upload_completed(
            bucket=upload.bucket,
            key=upload.key,
            records=records,
            duration=dt.timedelta(seconds=time.perf_counter() - started),
        )

    def _log_failure(
        self,
        upload: UploadDescriptor,
        records: list[EventRecord],
        error: BaseException,
        category: ErrorCategory,
    ) -> None:
        self._event_logger.log_upload_failed(
            bucket=upload.bucket,
            key=upload.key,
            events=len(records),
            error=error,
            category=category,
        )


async def export_batch(
    batch: EventBatch,
    context: ExportContext,
    *,
    clock: typ.Callable[[], dt.datetime] = utcnow,
) -> ExportResult:
    """Export one batch with a throwaway pipeline bound to ``context``."""
    return await ExportPipeline(context, clock=clock).export(batch)


__all__ = [
    "ExportContext",
    "ExportPipeline",
    "ExportResult",
    "build_upload",
    "export_batch",
]

"""Dramatiq actor that drives the export pipeline.

The actor is the caller that owns redelivery: a batch whose upload fails
with ``RetryableExportError`` is re-enqueued by Dramatiq's Retries
middleware with exponential backoff. Configuration and usage errors are
never retried.

Usage
-----
Queue a batch for export:

>>> export_batch_job.send([{"event": "signup", "distinct_id": "u1"}])

"""

from __future__ import annotations

import asyncio
import threading
import typing as typ

import dramatiq

from creel.errors import RetryableExportError
from creel.export._broker import ensure_broker_configured
from creel.export.pipeline import ExportContext, ExportPipeline
from creel.records import batch_from_payloads

MAX_REDELIVERIES = 10
_MIN_BACKOFF_MS = 15_000
_MAX_BACKOFF_MS = 15 * 60 * 1000

_PIPELINE: ExportPipeline | None = None
_PIPELINE_LOCK = threading.Lock()


def get_pipeline() -> ExportPipeline:
    """Return the process-wide pipeline, building its context on first use.

    Thread-safe: Dramatiq runs actors on several worker threads.

    Raises
    ------
    ExportConfigError
        If the environment does not describe a valid export setup.

    """
    global _PIPELINE

    with _PIPELINE_LOCK:
        if _PIPELINE is None:
            _PIPELINE = ExportPipeline(ExportContext.from_env())
        return _PIPELINE


def reset_pipeline() -> None:
    """Drop the cached pipeline so the next call re-reads the environment."""
    global _PIPELINE

    with _PIPELINE_LOCK:
        _PIPELINE = None


def should_redeliver(retries: int, exception: Exception) -> bool:
    """Return True when Dramatiq should re-enqueue a failed export.

    Parameters
    ----------
    retries
        Number of times the message has already been retried.
    exception
        The exception raised by the actor.

    """
    return isinstance(exception, RetryableExportError) and retries < MAX_REDELIVERIES


ensure_broker_configured()


@dramatiq.actor(
    retry_when=should_redeliver,
    min_backoff=_MIN_BACKOFF_MS,
    max_backoff=_MAX_BACKOFF_MS,
)
def export_batch_job(events: list[dict[str, typ.Any]]) -> str | None:
    """Export one batch of event payloads.

    Parameters
    ----------
    events
        Decoded event payloads in the order they were accumulated.

    Returns
    -------
    str | None
        Key of the stored object, or ``None`` when every event was filtered
        out.

    Raises
    ------
    RetryableExportError
        If the upload failed; Dramatiq redelivers the message.

    """
    pipeline = get_pipeline()
    result = asyncio.run(pipeline.export(batch_from_payloads(events)))
    return result.key


__all__ = [
    "MAX_REDELIVERIES",
    "export_batch_job",
    "get_pipeline",
    "reset_pipeline",
    "should_redeliver",
]

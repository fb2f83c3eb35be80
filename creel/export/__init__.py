"""Batch export pipeline for event records.

Filters a batch by event name, serialises it as line-delimited JSON or
tabular text, optionally compresses it, names it under a date-partitioned
key and uploads it as a single object.

Public API
----------
BatchThresholds
    Scheduler batch limits resolved alongside the export settings.
CompressionMode
    Enumeration of body codecs (gzip, brotli, none).
ExportConfig
    Frozen export settings with environment loading.
ExportContext
    Immutable setup state shared by every export call.
ExportPipeline
    Runs filter, serialise, compress, name and upload for one batch.
ExportResult
    Outcome of a successful export call.
FilterSet
    Compiled allow/deny event-name sets.
S3ConnectionConfig
    Credentials and addressing for the S3 adapter.
ServerSideEncryption
    Enumeration of S3 encryption modes.
UploadFormat
    Enumeration of body formats.

The Dramatiq actor lives in ``creel.export.actor`` and is imported only by
workers, since importing it configures a broker.

Example:
>>> from creel.export import ExportContext, ExportPipeline
>>> pipeline = ExportPipeline(ExportContext.from_env())
>>> result = await pipeline.export(batch)

"""

from creel.export.compression import CompressionMode, compress, decompress
from creel.export.config import (
    BatchThresholds,
    ExportConfig,
    S3ConnectionConfig,
    ServerSideEncryption,
)
from creel.export.filters import FilterSet, parse_event_names, select_events
from creel.export.keys import name_object_key, random_key_suffix
from creel.export.observability import ExportEventLogger, ExportEventType
from creel.export.pipeline import (
    ExportContext,
    ExportPipeline,
    ExportResult,
    build_upload,
    export_batch,
)
from creel.export.serialization import UploadFormat, serialize_batch

__all__ = [
    "BatchThresholds",
    "CompressionMode",
    "ExportConfig",
    "ExportContext",
    "ExportEventLogger",
    "ExportEventType",
    "ExportPipeline",
    "ExportResult",
    "FilterSet",
    "S3ConnectionConfig",
    "ServerSideEncryption",
    "UploadFormat",
    "build_upload",
    "compress",
    "decompress",
    "export_batch",
    "name_object_key",
    "parse_event_names",
    "random_key_suffix",
    "select_events",
    "serialize_batch",
]

"""Creel: batch event export to object storage.

Example:
>>> from creel import ExportContext, ExportPipeline, batch_from_payloads
>>> pipeline = ExportPipeline(ExportContext.from_env())
>>> batch = batch_from_payloads([{"event": "signup", "distinct_id": "u1"}])
>>> result = await pipeline.export(batch)

"""

from creel.errors import (
    EmptyBatchError,
    ErrorCategory,
    ExportConfigError,
    ExportError,
    NaiveTimestampError,
    RetryableExportError,
    UnsupportedFieldTypeError,
    UsageError,
)
from creel.export import (
    CompressionMode,
    ExportConfig,
    ExportContext,
    ExportPipeline,
    ExportResult,
    FilterSet,
    UploadFormat,
)
from creel.records import EventRecord, batch_from_payloads

__all__ = [
    "CompressionMode",
    "EmptyBatchError",
    "ErrorCategory",
    "EventRecord",
    "ExportConfig",
    "ExportConfigError",
    "ExportContext",
    "ExportError",
    "ExportPipeline",
    "ExportResult",
    "FilterSet",
    "NaiveTimestampError",
    "RetryableExportError",
    "UnsupportedFieldTypeError",
    "UploadFormat",
    "UsageError",
    "batch_from_payloads",
]

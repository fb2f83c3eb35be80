"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import pytest

from creel.export.compression import CompressionMode
from creel.export.config import ExportConfig
from creel.export.filters import FilterSet
from creel.export.pipeline import ExportContext, ExportPipeline
from creel.export.serialization import UploadFormat
from creel.storage.memory import InMemoryObjectStore
from tests.helpers.events import fixed_clock

_CREEL_ENV_VARS = (
    "CREEL_AWS_ACCESS_KEY_ID",
    "CREEL_AWS_SECRET_ACCESS_KEY",
    "CREEL_AWS_REGION",
    "CREEL_S3_BUCKET_ENDPOINT",
    "CREEL_S3_SIGNATURE_VERSION",
    "CREEL_S3_FORCE_PATH_STYLE",
    "CREEL_S3_BUCKET_NAME",
    "CREEL_PREFIX",
    "CREEL_UPLOAD_FORMAT",
    "CREEL_COMPRESSION",
    "CREEL_SSE",
    "CREEL_SSE_KMS_KEY_ID",
    "CREEL_EVENTS_TO_IGNORE",
    "CREEL_EVENTS_TO_EXPORT",
    "CREEL_UPLOAD_MINUTES",
    "CREEL_UPLOAD_MEGABYTES",
    "CREEL_UNIQUE_KEYS",
    "CREEL_UPLOAD_TIMEOUT_SECONDS",
    "CREEL_STORAGE_BACKEND",
    "CREEL_STORAGE_PATH",
    "CREEL_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_creel_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove any CREEL_* settings inherited from the developer's shell."""
    for name in _CREEL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def memory_store() -> InMemoryObjectStore:
    """Return an empty in-memory object store."""
    return InMemoryObjectStore()


@pytest.fixture
def export_config() -> ExportConfig:
    """Return an uncompressed JSONL configuration with deterministic keys."""
    return ExportConfig(
        bucket="events",
        prefix="posthog/",
        upload_format=UploadFormat.JSONL,
        compression=CompressionMode.NONE,
        unique_keys=False,
    )


@pytest.fixture
def export_context(
    export_config: ExportConfig, memory_store: InMemoryObjectStore
) -> ExportContext:
    """Return a context with no filters, backed by the memory store."""
    return ExportContext(config=export_config, filters=FilterSet(), store=memory_store)


@pytest.fixture
def pipeline(export_context: ExportContext) -> ExportPipeline:
    """Return a pipeline with a fixed export clock."""
    return ExportPipeline(export_context, clock=fixed_clock())

"""Unit tests for the in-memory store and the storage backend factory."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest

from creel.errors import ExportConfigError
from creel.storage import (
    FilesystemObjectStore,
    InMemoryObjectStore,
    S3ObjectStore,
    UploadDescriptor,
    create_object_store,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def _upload(key: str) -> UploadDescriptor:
    return UploadDescriptor(bucket="events", key=key, body=key.encode())


class TestInMemoryObjectStore:
    """Tests for InMemoryObjectStore."""

    def test_records_uploads_and_attempts(self) -> None:
        """Each put is counted and stored in order."""
        store = InMemoryObjectStore()

        asyncio.run(store.put(_upload("a")))
        asyncio.run(store.put(_upload("b")))

        assert store.attempts == 2
        assert [upload.key for upload in store.uploads] == ["a", "b"]
        assert store.objects[("events", "b")] == b"b"

    def test_queued_failures_are_raised_in_order(self) -> None:
        """Each queued failure consumes exactly one attempt."""
        store = InMemoryObjectStore()
        first = TimeoutError("slow")
        second = ConnectionError("reset")
        store.fail_next(first)
        store.fail_next(second)

        for expected in (first, second):
            with pytest.raises(type(expected)) as exc_info:
                asyncio.run(store.put(_upload("a")))
            assert exc_info.value is expected

        asyncio.run(store.put(_upload("a")))
        assert store.attempts == 3
        assert len(store.uploads) == 1


class TestCreateObjectStore:
    """Tests for backend selection from CREEL_STORAGE_BACKEND."""

    def test_memory_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """``memory`` selects the in-memory store."""
        monkeypatch.setenv("CREEL_STORAGE_BACKEND", " Memory ")

        assert isinstance(create_object_store(), InMemoryObjectStore)

    def test_filesystem_backend(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """``filesystem`` writes beneath CREEL_STORAGE_PATH."""
        monkeypatch.setenv("CREEL_STORAGE_BACKEND", "filesystem")
        monkeypatch.setenv("CREEL_STORAGE_PATH", str(tmp_path))

        store = create_object_store()

        assert isinstance(store, FilesystemObjectStore)
        assert store.path_for("events", "k") == tmp_path / "events" / "k"

    def test_filesystem_backend_requires_path(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The filesystem backend cannot guess a root directory."""
        monkeypatch.setenv("CREEL_STORAGE_BACKEND", "filesystem")

        with pytest.raises(ExportConfigError, match="CREEL_STORAGE_PATH"):
            create_object_store()

    def test_s3_is_the_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """With no backend set the S3 store is built from credentials."""
        monkeypatch.setenv("CREEL_AWS_ACCESS_KEY_ID", "AKIAEXAMPLE")
        monkeypatch.setenv("CREEL_AWS_SECRET_ACCESS_KEY", "secret")
        monkeypatch.setenv("CREEL_AWS_REGION", "eu-west-1")

        assert isinstance(create_object_store(), S3ObjectStore)

    def test_s3_requires_credentials(self) -> None:
        """Missing S3 credentials fail at setup."""
        with pytest.raises(ExportConfigError, match="AWS access key missing"):
            create_object_store()

    def test_unknown_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unrecognised backends are rejected with the valid choices."""
        monkeypatch.setenv("CREEL_STORAGE_BACKEND", "gcs")

        with pytest.raises(ExportConfigError, match="gcs"):
            create_object_store()

"""Unit tests for FilesystemObjectStore."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest

from creel.storage.errors import ObjectStoreError
from creel.storage.filesystem import FilesystemObjectStore
from creel.storage.protocol import ObjectStore, UploadDescriptor

if typ.TYPE_CHECKING:
    from pathlib import Path


class TestFilesystemObjectStore:
    """Tests for the filesystem object store adapter."""

    @pytest.fixture
    def root(self, tmp_path: Path) -> Path:
        """Return a temporary root for stored objects."""
        return tmp_path / "exports"

    @pytest.fixture
    def store(self, root: Path) -> FilesystemObjectStore:
        """Return a store writing beneath the temporary root."""
        return FilesystemObjectStore(root)

    def _put(self, store: FilesystemObjectStore, key: str, body: bytes) -> None:
        asyncio.run(store.put(UploadDescriptor(bucket="events", key=key, body=body)))

    def test_satisfies_protocol(self, store: FilesystemObjectStore) -> None:
        """The adapter is an ObjectStore."""
        assert isinstance(store, ObjectStore)

    def test_put_mirrors_bucket_and_key(
        self, store: FilesystemObjectStore, root: Path
    ) -> None:
        """Objects land at {root}/{bucket}/{key}, creating directories."""
        self._put(store, "posthog/2024-07-08/20240708123456.789Z.jsonl", b"body")

        target = root / "events" / "posthog" / "2024-07-08"
        assert (target / "20240708123456.789Z.jsonl").read_bytes() == b"body"

    def test_put_overwrites_existing_object(
        self, store: FilesystemObjectStore, root: Path
    ) -> None:
        """A second put to the same key replaces the body."""
        self._put(store, "k.jsonl", b"first")
        self._put(store, "k.jsonl", b"second")

        assert (root / "events" / "k.jsonl").read_bytes() == b"second"

    @pytest.mark.parametrize("key", ["", "../escape.jsonl", "a/../../b", "/abs"])
    def test_rejects_keys_outside_bucket(
        self, store: FilesystemObjectStore, key: str
    ) -> None:
        """Keys that would escape the bucket directory are refused."""
        with pytest.raises(ObjectStoreError) as exc_info:
            self._put(store, key, b"x")

        assert exc_info.value.code == "InvalidKey"

    def test_write_failure_is_transport_error(self, tmp_path: Path) -> None:
        """OS errors surface as network-category store errors."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_bytes(b"")
        store = FilesystemObjectStore(blocker)

        with pytest.raises(ObjectStoreError) as exc_info:
            self._put(store, "k.jsonl", b"x")

        assert exc_info.value.code == "NetworkError"
        assert isinstance(exc_info.value.__cause__, OSError)

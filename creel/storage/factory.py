"""Factory for creating ObjectStore implementations from environment configuration."""

from __future__ import annotations

import os
import typing as typ
from pathlib import Path

from creel.errors import ExportConfigError
from creel.storage.filesystem import FilesystemObjectStore
from creel.storage.memory import InMemoryObjectStore

if typ.TYPE_CHECKING:
    from creel.storage.protocol import ObjectStore

_VALID_BACKENDS = ("s3", "filesystem", "memory")


def create_object_store() -> ObjectStore:
    """Create an ObjectStore based on environment configuration.

    Reads ``CREEL_STORAGE_BACKEND`` (``s3`` when unset). The ``s3`` backend
    also reads the connection variables documented on
    ``S3ConnectionConfig.from_env``; the ``filesystem`` backend requires
    ``CREEL_STORAGE_PATH``.

    Returns
    -------
    ObjectStore
        Configured store implementation.

    Raises
    ------
    ExportConfigError
        If the backend is unknown or its settings are missing.

    Examples
    --------
    >>> import os
    >>> os.environ["CREEL_STORAGE_BACKEND"] = "memory"
    >>> isinstance(create_object_store(), InMemoryObjectStore)
    True

    """
    raw_backend = os.environ.get("CREEL_STORAGE_BACKEND", "")
    backend = raw_backend.strip().lower() or "s3"
    if backend not in _VALID_BACKENDS:
        raise ExportConfigError.invalid_choice(
            "storage backend", raw_backend, _VALID_BACKENDS
        )

    if backend == "memory":
        return InMemoryObjectStore()

    if backend == "filesystem":
        raw_path = os.environ.get("CREEL_STORAGE_PATH", "").strip()
        if not raw_path:
            raise ExportConfigError.missing("Storage path", "CREEL_STORAGE_PATH")
        return FilesystemObjectStore(Path(raw_path))

    # backend == "s3"
    from creel.export.config import S3ConnectionConfig
    from creel.storage.s3 import S3ObjectStore

    return S3ObjectStore(S3ConnectionConfig.from_env())

"""ObjectStore protocol for uploading exported batches.

This module defines the port (in hexagonal architecture terms) through
which the export pipeline stores objects. Adapters implement it for S3,
the local filesystem and an in-memory recorder used in tests.

The protocol is ``runtime_checkable`` to support ``isinstance`` checks
for dependency injection and testing scenarios.

Usage
-----
>>> from creel.storage import InMemoryObjectStore, ObjectStore
>>> isinstance(InMemoryObjectStore(), ObjectStore)
True

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ


@dc.dataclass(frozen=True, slots=True)
class UploadDescriptor:
    """Everything needed to store one exported batch.

    Built fresh for each batch and never mutated once handed to a store.

    Attributes
    ----------
    bucket
        Destination bucket name.
    key
        Object key within the bucket.
    body
        Serialised (and possibly compressed) batch.
    content_type
        MIME type of the uncompressed body.
    content_encoding
        ``"gzip"`` or ``"br"`` for compressed bodies, otherwise ``None``.
    server_side_encryption
        ``"AES256"`` or ``"aws:kms"``; ``None`` when encryption is disabled.
    sse_kms_key_id
        KMS key id, set only for ``aws:kms`` encryption.

    """

    bucket: str
    key: str
    body: bytes
    content_type: str = "application/octet-stream"
    content_encoding: str | None = None
    server_side_encryption: str | None = None
    sse_kms_key_id: str | None = None


@typ.runtime_checkable
class ObjectStore(typ.Protocol):
    """Protocol for storing one object per exported batch."""

    async def put(self, upload: UploadDescriptor) -> None:
        """Store ``upload.body`` under ``upload.bucket``/``upload.key``.

        Implementations raise on any failure; the pipeline treats every
        exception raised here as retryable.

        """
        ...

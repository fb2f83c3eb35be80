"""In-memory ObjectStore for tests and dry runs."""

from __future__ import annotations

import collections
import typing as typ

if typ.TYPE_CHECKING:
    from creel.storage.protocol import UploadDescriptor


class InMemoryObjectStore:
    """Record uploads in memory.

    Failures can be queued with :meth:`fail_next`; each queued exception is
    raised by one subsequent ``put`` call, in order, instead of storing the
    object.

    Examples
    --------
    >>> import asyncio
    >>> from creel.storage import UploadDescriptor
    >>> store = InMemoryObjectStore()
    >>> asyncio.run(store.put(UploadDescriptor(bucket="b", key="k", body=b"x")))
    >>> store.objects[("b", "k")]
    b'x'

    """

    def __init__(self) -> None:
        """Initialise empty upload and failure records."""
        self.uploads: list[UploadDescriptor] = []
        self.attempts = 0
        self._failures: collections.deque[BaseException] = collections.deque()

    @property
    def objects(self) -> dict[tuple[str, str], bytes]:
        """Return stored bodies keyed by ``(bucket, key)``."""
        return {(upload.bucket, upload.key): upload.body for upload in self.uploads}

    def fail_next(self, error: BaseException) -> None:
        """Queue ``error`` to be raised by the next ``put``."""
        self._failures.append(error)

    async def put(self, upload: UploadDescriptor) -> None:
        """Store ``upload`` unless a failure is queued."""
        self.attempts += 1
        if self._failures:
            raise self._failures.popleft()
        self.uploads.append(upload)

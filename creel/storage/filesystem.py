r"""Filesystem adapter for the ObjectStore protocol.

Writes each object beneath a root directory, mirroring bucket and key::

    {root}/{bucket}/{key}

Useful for local runs where no object store is available.

Usage
-----
>>> import asyncio
>>> from pathlib import Path
>>> from creel.storage import FilesystemObjectStore, UploadDescriptor
>>>
>>> store = FilesystemObjectStore(Path("/var/lib/creel/exports"))
>>> upload = UploadDescriptor(
...     bucket="events",
...     key="2024-07-08/20240708120000.000Z.jsonl",
...     body=b'{"event":"signup"}',
... )
>>> asyncio.run(store.put(upload))

"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import PurePosixPath

from creel.storage.errors import ObjectStoreError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from creel.storage.protocol import UploadDescriptor


class FilesystemObjectStore:
    """Write objects to the local filesystem.

    Parameters
    ----------
    root
        Directory that holds one subdirectory per bucket.

    """

    def __init__(self, root: Path) -> None:
        """Initialise the store with a root directory path."""
        self._root = root

    def path_for(self, bucket: str, key: str) -> Path:
        """Return the file path an object is stored at.

        Raises
        ------
        ObjectStoreError
            If the key would escape the bucket directory.

        """
        parts = PurePosixPath(key).parts
        if not parts or ".." in parts or PurePosixPath(key).is_absolute():
            msg = f"Invalid object key for filesystem store: {key!r}"
            raise ObjectStoreError(msg, code="InvalidKey")
        return self._root.joinpath(bucket, *parts)

    async def put(self, upload: UploadDescriptor) -> None:
        """Write ``upload.body`` to its bucket/key path.

        Raises
        ------
        ObjectStoreError
            If the key is invalid or the file cannot be written.

        """
        target = self.path_for(upload.bucket, upload.key)
        try:
            await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(target.write_bytes, upload.body)
        except OSError as exc:
            raise ObjectStoreError.transport(str(exc)) from exc

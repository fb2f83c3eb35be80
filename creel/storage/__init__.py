"""Object storage adapters for exported batches.

Public API
----------
ObjectStore
    Protocol (port) for storing one object per batch.
UploadDescriptor
    Frozen dataclass describing a single upload.
ObjectStoreError
    Raised by adapters when an upload fails.
S3ObjectStore
    boto3-backed adapter for S3 and S3-compatible services.
FilesystemObjectStore
    Adapter writing ``{root}/{bucket}/{key}`` files.
InMemoryObjectStore
    Recording adapter for tests and dry runs.
create_object_store
    Select an adapter from ``CREEL_STORAGE_BACKEND``.

"""

from creel.storage.errors import ObjectStoreError
from creel.storage.factory import create_object_store
from creel.storage.filesystem import FilesystemObjectStore
from creel.storage.memory import InMemoryObjectStore
from creel.storage.protocol import ObjectStore, UploadDescriptor
from creel.storage.s3 import S3ObjectStore

__all__ = [
    "FilesystemObjectStore",
    "InMemoryObjectStore",
    "ObjectStore",
    "ObjectStoreError",
    "S3ObjectStore",
    "UploadDescriptor",
    "create_object_store",
]

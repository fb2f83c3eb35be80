"""Derive time-partitioned object keys for exported batches.

Keys have the shape::

    {prefix}{YYYY-MM-DD}/{YYYYMMDDHHMMSS.mmmZ}[-{suffix}].{format}[.gz|.br]

The date partition and compact timestamp are both taken in UTC. Two batches
named within the same millisecond share a key, so the later upload
overwrites the earlier one unless a random suffix is supplied.
"""

from __future__ import annotations

import secrets
import typing as typ

from creel.common.time import as_utc

if typ.TYPE_CHECKING:
    import datetime as dt

    from creel.export.compression import CompressionMode
    from creel.export.serialization import UploadFormat

SUFFIX_BYTES = 8


def random_key_suffix() -> str:
    """Return 8 random bytes from the OS CSPRNG, hex encoded."""
    return secrets.token_hex(SUFFIX_BYTES)


def _compact_timestamp(moment: dt.datetime) -> str:
    millis = moment.microsecond // 1000
    return f"{moment:%Y%m%d%H%M%S}.{millis:03d}Z"


def name_object_key(
    *,
    prefix: str,
    upload_format: UploadFormat,
    compression: CompressionMode,
    timestamp: dt.datetime,
    suffix: str | None = None,
) -> str:
    """Return the object key for a batch exported at ``timestamp``.

    Parameters
    ----------
    prefix
        Key prefix, used verbatim (include a trailing ``/`` for a folder).
    upload_format
        Body format; its value is the file extension.
    compression
        Compression mode; appends ``.gz`` or ``.br`` when active.
    timestamp
        Timezone-aware export time.
    suffix
        Optional uniqueness suffix inserted after the compact timestamp.

    Returns
    -------
    str
        The object key.

    Raises
    ------
    NaiveDatetimeError
        If ``timestamp`` has no timezone.

    """
    moment = as_utc(timestamp, context="export timestamp")
    stem = _compact_timestamp(moment)
    if suffix:
        stem = f"{stem}-{suffix}"
    return (
        f"{prefix}{moment:%Y-%m-%d}/{stem}.{upload_format.value}"
        f"{compression.extension}"
    )


__all__ = ["SUFFIX_BYTES", "name_object_key", "random_key_suffix"]

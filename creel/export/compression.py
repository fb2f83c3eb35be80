"""Optional compression of upload bodies.

Gzip bodies are written with a zero modification time so the same input
always yields the same bytes.
"""

from __future__ import annotations

import enum
import gzip

import brotli

from creel.errors import ExportConfigError


class CompressionMode(enum.StrEnum):
    """Supported compression codecs."""

    NONE = "no compression"
    GZIP = "gzip"
    BROTLI = "brotli"

    @classmethod
    def parse(cls, raw: str) -> CompressionMode:
        """Return the mode named by ``raw``.

        ``none`` is accepted as shorthand for ``no compression``.

        Raises
        ------
        ExportConfigError
            If ``raw`` does not name a supported mode.

        """
        normalised = raw.strip().lower()
        if normalised == "none":
            return cls.NONE
        try:
            return cls(normalised)
        except ValueError as exc:
            raise ExportConfigError.invalid_choice(
                "compression", raw, [member.value for member in cls]
            ) from exc

    @property
    def extension(self) -> str:
        """Return the key suffix for compressed objects (empty when none)."""
        return _EXTENSIONS[self]

    @property
    def content_encoding(self) -> str | None:
        """Return the HTTP content-encoding token, or None when uncompressed."""
        return _CONTENT_ENCODINGS[self]


_EXTENSIONS = {
    CompressionMode.NONE: "",
    CompressionMode.GZIP: ".gz",
    CompressionMode.BROTLI: ".br",
}
_CONTENT_ENCODINGS = {
    CompressionMode.NONE: None,
    CompressionMode.GZIP: "gzip",
    CompressionMode.BROTLI: "br",
}


def compress(data: bytes, mode: CompressionMode) -> bytes:
    """Compress ``data`` with ``mode``; ``NONE`` returns the input unchanged."""
    match mode:
        case CompressionMode.GZIP:
            return gzip.compress(data, mtime=0)
        case CompressionMode.BROTLI:
            return brotli.compress(data)
        case _:
            return data


def decompress(data: bytes, mode: CompressionMode) -> bytes:
    """Reverse :func:`compress` for ``mode``."""
    match mode:
        case CompressionMode.GZIP:
            return gzip.decompress(data)
        case CompressionMode.BROTLI:
            return brotli.decompress(data)
        case _:
            return data


__all__ = ["CompressionMode", "compress", "decompress"]

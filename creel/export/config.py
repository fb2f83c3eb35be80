"""Configuration for batch export and the S3 connection.

All settings are resolved once at setup into frozen dataclasses and are
read-only afterwards. Validation happens in ``__post_init__`` so a config
object that exists is always usable; anything wrong raises
``ExportConfigError`` before the first batch is accepted.

Usage
-----
Create a configuration directly:

>>> config = ExportConfig(bucket="events", prefix="posthog/")
>>> config.compression
<CompressionMode.GZIP: 'gzip'>

Or load from environment variables:

>>> import os
>>> os.environ["CREEL_S3_BUCKET_NAME"] = "events"
>>> ExportConfig.from_env().bucket
'events'

"""

from __future__ import annotations

import dataclasses as dc
import enum
import os

from creel.errors import ExportConfigError
from creel.export.compression import CompressionMode
from creel.export.serialization import UploadFormat

_DEFAULT_UPLOAD_MINUTES = 1
_DEFAULT_UPLOAD_MEGABYTES = 1
_MAX_UPLOAD_MINUTES = 60
_MAX_UPLOAD_MEGABYTES = 100
_DEFAULT_UPLOAD_TIMEOUT_S = 60.0
_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


class ServerSideEncryption(enum.StrEnum):
    """Server-side encryption modes understood by S3."""

    DISABLED = "disabled"
    AES256 = "AES256"
    KMS = "aws:kms"

    @classmethod
    def parse(cls, raw: str) -> ServerSideEncryption:
        """Return the mode named by ``raw`` (case-insensitive)."""
        normalised = raw.strip()
        for member in cls:
            if member.value.lower() == normalised.lower():
                return member
        raise ExportConfigError.invalid_choice(
            "server-side encryption", raw, [member.value for member in cls]
        )


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def _env_flag(name: str, *, default: bool = False) -> bool:
    raw = _env(name).lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ExportConfigError.invalid_choice(name, raw, ["true", "false"])


def _env_bounded_int(name: str, default: int, maximum: int) -> int:
    raw = _env(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ExportConfigError.invalid_number(name, raw, "must be an integer") from exc
    if not 1 <= value <= maximum:
        raise ExportConfigError.invalid_number(
            name, raw, f"must be between 1 and {maximum}"
        )
    return value


def _env_timeout(name: str) -> float | None:
    raw = _env(name)
    if not raw:
        return _DEFAULT_UPLOAD_TIMEOUT_S
    try:
        value = float(raw)
    except ValueError as exc:
        raise ExportConfigError.invalid_number(name, raw, "must be a number") from exc
    if value < 0:
        raise ExportConfigError.invalid_number(name, raw, "must not be negative")
    # Zero disables the timeout.
    return value or None


@dc.dataclass(frozen=True, slots=True)
class S3ConnectionConfig:
    """Credentials and addressing for the S3 client.

    Attributes
    ----------
    access_key_id
        AWS access key id.
    secret_access_key
        AWS secret access key.
    region
        AWS region. Required unless ``endpoint_url`` is set.
    endpoint_url
        Custom endpoint for S3-compatible services (MinIO, R2, ...).
    signature_version
        botocore signature version, ``None`` for the SDK default.
    force_path_style
        Use path-style instead of virtual-hosted addressing.

    """

    access_key_id: str
    secret_access_key: str
    region: str | None = None
    endpoint_url: str | None = None
    signature_version: str | None = None
    force_path_style: bool = False

    def __post_init__(self) -> None:
        """Reject missing credentials and unaddressable configurations."""
        if not self.access_key_id:
            raise ExportConfigError.missing(
                "AWS access key", "CREEL_AWS_ACCESS_KEY_ID"
            )
        if not self.secret_access_key:
            raise ExportConfigError.missing(
                "AWS secret access key", "CREEL_AWS_SECRET_ACCESS_KEY"
            )
        if not self.region and not self.endpoint_url:
            raise ExportConfigError.region_or_endpoint_required()

    @staticmethod
    def _parse_signature_version(raw: str) -> str | None:
        match raw.lower():
            case "":
                return None
            case "v4" | "s3v4":
                return "s3v4"
            case _:
                raise ExportConfigError.invalid_choice(
                    "signature version", raw, ["", "v4"]
                )

    @classmethod
    def from_env(cls) -> S3ConnectionConfig:
        """Build connection settings from environment variables.

        Reads ``CREEL_AWS_ACCESS_KEY_ID``, ``CREEL_AWS_SECRET_ACCESS_KEY``,
        ``CREEL_AWS_REGION``, ``CREEL_S3_BUCKET_ENDPOINT``,
        ``CREEL_S3_SIGNATURE_VERSION`` and ``CREEL_S3_FORCE_PATH_STYLE``.

        Raises
        ------
        ExportConfigError
            If credentials are missing, neither region nor endpoint is set,
            or a value is not recognised.

        """
        return cls(
            access_key_id=_env("CREEL_AWS_ACCESS_KEY_ID"),
            secret_access_key=_env("CREEL_AWS_SECRET_ACCESS_KEY"),
            region=_env("CREEL_AWS_REGION") or None,
            endpoint_url=_env("CREEL_S3_BUCKET_ENDPOINT") or None,
            signature_version=cls._parse_signature_version(
                _env("CREEL_S3_SIGNATURE_VERSION")
            ),
            force_path_style=_env_flag("CREEL_S3_FORCE_PATH_STYLE"),
        )


@dc.dataclass(frozen=True, slots=True)
class BatchThresholds:
    """Batch accumulation limits for the scheduler.

    The pipeline never buffers; these values are resolved here so the
    scheduler and the exporter agree on one validated configuration.
    """

    upload_minutes: int = _DEFAULT_UPLOAD_MINUTES
    upload_megabytes: int = _DEFAULT_UPLOAD_MEGABYTES

    @classmethod
    def from_env(cls) -> BatchThresholds:
        """Read ``CREEL_UPLOAD_MINUTES`` and ``CREEL_UPLOAD_MEGABYTES``."""
        return cls(
            upload_minutes=_env_bounded_int(
                "CREEL_UPLOAD_MINUTES", _DEFAULT_UPLOAD_MINUTES, _MAX_UPLOAD_MINUTES
            ),
            upload_megabytes=_env_bounded_int(
                "CREEL_UPLOAD_MEGABYTES",
                _DEFAULT_UPLOAD_MEGABYTES,
                _MAX_UPLOAD_MEGABYTES,
            ),
        )

    @property
    def upload_bytes(self) -> int:
        """Return the size threshold in bytes."""
        return self.upload_megabytes * 1024 * 1024


@dc.dataclass(frozen=True, slots=True)
class ExportConfig:
    """Process-wide export settings.

    Attributes
    ----------
    bucket
        Destination bucket name.
    prefix
        Prefix prepended verbatim to every object key.
    upload_format
        Body format of exported objects.
    compression
        Compression applied to the body.
    sse
        Server-side encryption mode requested for each object.
    sse_kms_key_id
        KMS key id; required when ``sse`` is ``aws:kms``.
    unique_keys
        Append a random suffix to each key so batches exported within the
        same millisecond never collide. Disable only when a single caller
        exports to the prefix one batch at a time.
    upload_timeout_s
        Seconds to wait for the store before abandoning the upload as a
        retryable failure. ``None`` waits indefinitely.

    """

    bucket: str
    prefix: str = ""
    upload_format: UploadFormat = UploadFormat.JSONL
    compression: CompressionMode = CompressionMode.GZIP
    sse: ServerSideEncryption = ServerSideEncryption.DISABLED
    sse_kms_key_id: str | None = None
    unique_keys: bool = True
    upload_timeout_s: float | None = _DEFAULT_UPLOAD_TIMEOUT_S

    def __post_init__(self) -> None:
        """Reject a missing bucket and KMS encryption without a key id."""
        if not self.bucket:
            raise ExportConfigError.missing("S3 bucket name", "CREEL_S3_BUCKET_NAME")
        if self.sse is ServerSideEncryption.KMS and not self.sse_kms_key_id:
            raise ExportConfigError.kms_key_required()

    @property
    def encryption_params(self) -> tuple[str | None, str | None]:
        """Return ``(server_side_encryption, kms_key_id)`` for an upload."""
        if self.sse is ServerSideEncryption.DISABLED:
            return (None, None)
        if self.sse is ServerSideEncryption.KMS:
            return (self.sse.value, self.sse_kms_key_id)
        return (self.sse.value, None)

    @classmethod
    def from_env(cls) -> ExportConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``CREEL_S3_BUCKET_NAME``: Required bucket name.
        - ``CREEL_PREFIX``: Optional key prefix.
        - ``CREEL_UPLOAD_FORMAT``: ``jsonl`` (default), ``txt``, ``csv`` or
          ``xlsx``.
        - ``CREEL_COMPRESSION``: ``gzip`` (default), ``brotli`` or
          ``no compression``.
        - ``CREEL_SSE``: ``disabled`` (default), ``AES256`` or ``aws:kms``.
        - ``CREEL_SSE_KMS_KEY_ID``: KMS key id for ``aws:kms``.
        - ``CREEL_UNIQUE_KEYS``: Append a random suffix to keys (default
          ``true``).
        - ``CREEL_UPLOAD_TIMEOUT_SECONDS``: Upload timeout; ``0`` disables it.

        Returns
        -------
        ExportConfig
            Configuration instance with values from environment or defaults.

        Raises
        ------
        ExportConfigError
            If a required value is missing or a value is not recognised.

        """
        raw_format = _env("CREEL_UPLOAD_FORMAT")
        raw_compression = _env("CREEL_COMPRESSION")
        raw_sse = _env("CREEL_SSE")
        return cls(
            bucket=_env("CREEL_S3_BUCKET_NAME"),
            # Prefix is used verbatim, surrounding whitespace included.
            prefix=os.environ.get("CREEL_PREFIX", ""),
            upload_format=(
                UploadFormat.parse(raw_format) if raw_format else UploadFormat.JSONL
            ),
            compression=(
                CompressionMode.parse(raw_compression)
                if raw_compression
                else CompressionMode.GZIP
            ),
            sse=(
                ServerSideEncryption.parse(raw_sse)
                if raw_sse
                else ServerSideEncryption.DISABLED
            ),
            sse_kms_key_id=_env("CREEL_SSE_KMS_KEY_ID") or None,
            unique_keys=_env_flag("CREEL_UNIQUE_KEYS", default=True),
            upload_timeout_s=_env_timeout("CREEL_UPLOAD_TIMEOUT_SECONDS"),
        )


__all__ = [
    "BatchThresholds",
    "ExportConfig",
    "S3ConnectionConfig",
    "ServerSideEncryption",
]

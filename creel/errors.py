"""Error taxonomy for batch export.

Three families reach callers:

``ExportConfigError``
    Fatal, raised during setup. Never retried.
``UsageError``
    Fatal, raised at call time for malformed input (an empty batch handed to
    the tabular serializer, a payload holding values that cannot be encoded
    or a datetime without a timezone).
``RetryableExportError``
    Transient. Every failure raised while uploading is reported this way so the
    scheduler can redeliver the same batch later.
"""

from __future__ import annotations

import enum
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class ErrorCategory(enum.StrEnum):
    """Categories for upload failure classification in alerts."""

    THROTTLED = "throttled"
    PERMISSION = "permission"
    NETWORK = "network"
    TIMEOUT = "timeout"
    STORAGE = "storage"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class ExportError(Exception):
    """Base class for all export errors."""


class ExportConfigError(ExportError):
    """Raised when export configuration is missing or contradictory."""

    @classmethod
    def missing(cls, setting: str, env_var: str) -> ExportConfigError:
        """Return an error for a required setting that was not supplied."""
        return cls(f"{setting} missing! Set {env_var}.")

    @classmethod
    def region_or_endpoint_required(cls) -> ExportConfigError:
        """Return an error when neither a region nor an endpoint is set."""
        return cls("AWS region must be set if the S3 bucket endpoint is unset!")

    @classmethod
    def kms_key_required(cls) -> ExportConfigError:
        """Return an error when KMS encryption is requested without a key id."""
        return cls("AWS KMS encryption requested but no KMS key ID provided!")

    @classmethod
    def blank_export_list(cls) -> ExportConfigError:
        """Return an error for an allow-list made only of separators/whitespace."""
        return cls(
            "Events to export should be comma separated and clear whitespaces if any!"
        )

    @classmethod
    def broker_missing(cls, stub_flag: str) -> ExportConfigError:
        """Return an error when no Dramatiq broker is available to the actor."""
        return cls(
            "No Dramatiq broker configured! Install one before importing the "
            f"export actor, or set {stub_flag}=1 for local runs."
        )

    @classmethod
    def invalid_choice(
        cls, setting: str, value: str, valid: cabc.Iterable[str]
    ) -> ExportConfigError:
        """Return an error for a value outside an enumerated set."""
        options = ", ".join(f"'{option}'" for option in valid)
        return cls(f"Invalid {setting} '{value}'. Valid options are: {options}")

    @classmethod
    def invalid_number(
        cls, env_var: str, value: str, constraint: str
    ) -> ExportConfigError:
        """Return an error for a numeric setting that fails validation."""
        return cls(f"{env_var} {constraint}, got: {value!r}")


class UsageError(ExportError):
    """Raised when the pipeline is handed input it cannot process."""


class EmptyBatchError(UsageError):
    """Raised when a tabular export receives no records to derive headers from."""

    def __init__(self, upload_format: str) -> None:
        """Record the format that required a non-empty batch."""
        self.upload_format = upload_format
        super().__init__(
            f"{upload_format} export needs at least one event to derive its header"
        )


class UnsupportedFieldTypeError(UsageError):
    """Raised when an event payload holds a value that cannot be exported."""

    def __init__(self, field: str, type_name: str) -> None:
        """Record the offending field path and type name for diagnostics."""
        self.field = field
        self.type_name = type_name
        super().__init__(f"field {field!r} holds unsupported type {type_name}")


class NaiveTimestampError(UsageError):
    """Raised when an event payload holds a datetime without a timezone."""

    def __init__(self, field: str) -> None:
        """Record the field path of the ambiguous timestamp."""
        self.field = field
        super().__init__(f"field {field!r} holds a datetime without a timezone")


class RetryableExportError(ExportError):
    """Raised when an upload fails and the batch should be redelivered.

    Attributes
    ----------
    bucket
        Destination bucket of the failed upload.
    key
        Object key the batch would have been stored under.
    events
        Number of events in the batch that was not stored.
    category
        Classification of the underlying failure for alert routing.

    """

    def __init__(
        self,
        *,
        bucket: str,
        key: str,
        events: int,
        category: ErrorCategory,
    ) -> None:
        """Initialise with the upload identity and failure category."""
        self.bucket = bucket
        self.key = key
        self.events = events
        self.category = category
        super().__init__(
            f"Uploading {events} event(s) to s3://{bucket}/{key} failed "
            f"({category}); redeliver the batch"
        )


__all__ = [
    "EmptyBatchError",
    "ErrorCategory",
    "ExportConfigError",
    "ExportError",
    "RetryableExportError",
    "UnsupportedFieldTypeError",
    "UsageError",
]

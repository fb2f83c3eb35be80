"""Storage adapter errors."""

from __future__ import annotations


class ObjectStoreError(RuntimeError):
    """Raised when an object store rejects or fails an upload.

    Attributes
    ----------
    code
        Service error code (for example ``SlowDown`` or ``AccessDenied``)
        when the backend reported one.
    status_code
        HTTP status code of the failed request, if known.

    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialise with a message and optional service error details."""
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def service_error(
        cls, code: str | None, message: str, status_code: int | None
    ) -> ObjectStoreError:
        """Return an error for a response the service rejected."""
        return cls(
            f"Object store rejected upload: {code or 'unknown'}: {message}",
            code=code,
            status_code=status_code,
        )

    @classmethod
    def transport(cls, detail: str) -> ObjectStoreError:
        """Return an error for a failure before any response was received."""
        return cls(f"Object store unreachable: {detail}", code="NetworkError")

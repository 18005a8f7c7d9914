"""
Application errors for clean API error handling.

Services raise these; the API layer maps them to HTTP statuses and protocol
error envelopes so services stay free of FastAPI/HTTP types.
"""


class ApiDirectoryError(Exception):
    """Base class for all errors raised by the API directory services."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ApiDirectoryError):
    """Raised when a request envelope is malformed (user-correctable)."""

    def __init__(self, message: str, details: str | None = None) -> None:
        self.details = details
        super().__init__(message)


class NotFoundError(ApiDirectoryError):
    """Raised when a target agent or a remote resource cannot be located."""


class AmbiguousResourceError(ApiDirectoryError):
    """Raised when a resource name resolves to a directory instead of a single file."""


class TransportError(ApiDirectoryError):
    """
    Raised on network-level failure: non-2xx response, timeout, DNS/connect error.

    stage tells which hop failed ("metadata" lookup or content "download").
    """

    def __init__(self, message: str, stage: str, status_code: int | None = None) -> None:
        self.stage = stage
        self.status_code = status_code
        super().__init__(message)


class SerializationError(ApiDirectoryError):
    """Raised when fetched or cached content is not the JSON we expect."""


class InternalError(ApiDirectoryError):
    """Raised for anything unanticipated; surfaced to callers only as a generic message."""

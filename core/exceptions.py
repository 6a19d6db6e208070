"""Failure taxonomy for the catalog proxy and its HTTP status table.

Every failure raised below the routers is a ``CatalogServiceError`` tagged
with a ``FailureKind``. The routers never pick status codes themselves: the
exception handler registered in ``main.py`` looks the kind up in
``FAILURE_STATUS``.
"""

from enum import StrEnum


class FailureKind(StrEnum):
    """Closed set of failure categories."""

    VALIDATION = "validation"
    DECODE = "decode"
    UPSTREAM_REJECTED = "upstream_rejected"
    TRANSPORT = "transport"
    PERSISTENCE = "persistence"
    UNEXPECTED = "unexpected"


# PERSISTENCE has no entry: write failures are reported on the query outcome
# and never reach the handler.
FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.VALIDATION: 400,
    FailureKind.DECODE: 400,
    FailureKind.UPSTREAM_REJECTED: 400,
    FailureKind.TRANSPORT: 500,
    FailureKind.UNEXPECTED: 500,
}


class CatalogServiceError(Exception):
    """Base exception for all catalog service errors."""

    kind: FailureKind = FailureKind.UNEXPECTED

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InputValidationError(CatalogServiceError):
    """Raised when a search term or artist ID is missing or malformed."""

    kind = FailureKind.VALIDATION


class UpstreamTransportError(CatalogServiceError):
    """Raised when the iTunes API cannot be reached or answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code

    @property
    def kind(self) -> FailureKind:  # type: ignore[override]
        if self.status_code is not None and 400 <= self.status_code < 500:
            return FailureKind.UPSTREAM_REJECTED
        return FailureKind.TRANSPORT


class UpstreamTimeoutError(UpstreamTransportError):
    """Raised when an iTunes request exceeds the configured timeout."""


class ResponseDecodeError(CatalogServiceError):
    """Raised when an iTunes response body is not valid JSON or has the wrong shape."""

    kind = FailureKind.DECODE


class PersistenceError(CatalogServiceError):
    """Raised by the catalog database when a read or write fails."""

    kind = FailureKind.PERSISTENCE


class UnexpectedServiceError(CatalogServiceError):
    """Raised when a lower layer fails outside the known failure kinds."""

    kind = FailureKind.UNEXPECTED


class ServiceInitializationError(CatalogServiceError):
    """Raised when a service fails to initialize."""

    pass


def failure_kind(error: BaseException) -> FailureKind:
    """Return the failure kind of any exception, defaulting to UNEXPECTED."""
    if isinstance(error, CatalogServiceError):
        return error.kind
    return FailureKind.UNEXPECTED


def status_for(error: BaseException) -> int:
    """Map an exception to the HTTP status code the API responds with."""
    return FAILURE_STATUS.get(failure_kind(error), 500)

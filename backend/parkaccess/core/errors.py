"""
Centralized error handling for listing, auth and backend failures.
Exception types plus a rule table so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_UNPROCESSABLE = 422  # validation: missing location, bad email, short password
STATUS_UNAUTHORIZED = 401
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_BAD_GATEWAY = 502  # remote data service answered with an error
STATUS_INTERNAL_ERROR = 500

MSG_LOGIN_REQUIRED = "You must be logged in to do this"
MSG_NO_PERMISSION = "You do not have permission to view this page"
MSG_REQUEST_FAILED = "Request failed"


# ---------------------------------------------------------------------------
# Exception types
# ---------------------------------------------------------------------------


class ParkAccessError(Exception):
    """Base for every error this package raises on purpose."""


class InvalidInputError(ParkAccessError):
    """Client-side validation failed; nothing was sent over the network."""


class LocationRequiredError(InvalidInputError):
    def __init__(self, message: str = "A location must be chosen before submitting a spot") -> None:
        super().__init__(message)


class LoginRequiredError(ParkAccessError):
    def __init__(self, message: str = MSG_LOGIN_REQUIRED) -> None:
        super().__init__(message)


class PermissionDeniedError(ParkAccessError):
    def __init__(self, message: str = MSG_NO_PERMISSION) -> None:
        super().__init__(message)


class ListingNotFoundError(ParkAccessError):
    def __init__(self, spot_id: str) -> None:
        super().__init__(f"Parking spot not found: {spot_id}")
        self.spot_id = spot_id


class UnscopedMutationError(ParkAccessError):
    """update/delete without a filter would touch the whole table."""


class BackendError(ParkAccessError):
    """Remote call answered with status >= 400 (or could not be completed)."""

    def __init__(self, message: str = MSG_REQUEST_FAILED, status_code: int | None = None, data=None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.data = data


class RelayError(BackendError):
    """The relay itself failed (its own 400/500), not the upstream call."""


def upstream_message(data, default: str = MSG_REQUEST_FAILED) -> str:
    """Best human-readable message out of an upstream error body."""
    if isinstance(data, dict):
        for key in ("message", "msg", "error_description", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return default


# ---------------------------------------------------------------------------
# Error rules: (exception type, status_code). First match wins, so subclasses go first.
# ---------------------------------------------------------------------------

ERROR_RULES: list[tuple[type[Exception], int]] = [
    (InvalidInputError, STATUS_UNPROCESSABLE),
    (LoginRequiredError, STATUS_UNAUTHORIZED),
    (PermissionDeniedError, STATUS_FORBIDDEN),
    (ListingNotFoundError, STATUS_NOT_FOUND),
    (UnscopedMutationError, STATUS_INTERNAL_ERROR),
    (BackendError, STATUS_BAD_GATEWAY),
]


def error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception from a listing/auth operation into an HTTPException.
    Upstream 401/403 keep their meaning; other backend failures become 502.
    """
    msg = str(exc)
    if isinstance(exc, BackendError) and exc.status_code in (STATUS_UNAUTHORIZED, STATUS_FORBIDDEN):
        return HTTPException(status_code=exc.status_code, detail=msg)
    for exc_type, status_code in ERROR_RULES:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=msg)
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=msg)

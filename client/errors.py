"""Exception hierarchy for the PlanHaus sync layer.

Every failure that leaves the HTTP core is an ApiError. ``retryable`` tells
the query cache whether a read may be attempted again under its backoff
policy; everything else is terminal.
"""

from __future__ import annotations

from typing import Optional


class ApiError(Exception):
    """Base class for client-side API failures."""

    retryable = False

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.status}: {self.message}"
        return self.message


class NetworkError(ApiError):
    """The request never produced an HTTP response (offline, DNS, reset)."""

    retryable = True


class HttpError(ApiError):
    """The server answered with a non-2xx status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message, status=status)


class ClientError(HttpError):
    """4xx other than 401. Shown to the user, never retried."""


class ServerError(HttpError):
    """5xx. Reads retry under the backoff policy."""

    retryable = True


class AuthenticationError(ApiError):
    """401 that the recovery protocol could not resolve."""

    def __init__(self, message: str = "Session expired") -> None:
        super().__init__(message, status=401)


class InvalidResponseError(ApiError):
    """A 2xx body that is missing, not JSON, or the wrong shape."""

    retryable = True


class RequestCancelledError(ApiError):
    """The caller cancelled the request before it completed."""

    def __init__(self, message: str = "Request cancelled") -> None:
        super().__init__(message)


class FormValidationError(ApiError):
    """Input rejected before dispatch; no network call was made.

    Attributes:
        field_errors: Mapping of field name to a human-readable message.
    """

    def __init__(self, field_errors: dict[str, str], message: str = "Please fix the highlighted fields") -> None:
        super().__init__(message)
        self.field_errors = field_errors


class UploadRejectedError(FormValidationError):
    """A file failed the client-side type or size checks."""

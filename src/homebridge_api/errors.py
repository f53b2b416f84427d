"""
Error taxonomy and normalization of transport/HTTP failures.

Every failure that leaves the pipeline is a :class:`HomebridgeError` whose
``kind`` is one of the :class:`ErrorKind` constants.  Raw ``requests``
exceptions are only converted here, after the retry policy has finished
with them.
"""

from __future__ import annotations

from typing import Any

import requests


class ErrorKind:
    """
    Error category constants.

    Pre-network kinds (credentials, token, parameters, catalog) fail fast;
    HTTP kinds are assigned by :func:`normalize_error` from the status code.
    """

    MISSING_CREDENTIAL = "missing_credential"
    NO_ACCESS_TOKEN = "no_access_token"
    AUTHENTICATION_FAILED = "authentication_failed"
    INVALID_PARAMETER = "invalid_parameter"
    UNKNOWN_OPERATION = "unknown_operation"
    PAGINATION_LIMIT = "pagination_limit_exceeded"
    API_ERROR = "api_error"

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


class HomebridgeError(Exception):
    """
    A normalized, user-facing failure.

    Args:
        kind: One of the :class:`ErrorKind` constants.
        message: Short headline (e.g. ``"Not Found"``).
        description: Longer human-readable explanation.
        http_status: HTTP status of the failed response, if any.
        cause: Raw response body, if any.
    """

    def __init__(
        self,
        kind: str,
        message: str,
        description: str = "",
        http_status: int | None = None,
        cause: Any = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.description = description
        self.http_status = http_status
        self.cause = cause

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "description": self.description,
            "http_status": self.http_status,
            "cause": self.cause,
        }


# status → (kind, message, description)
STATUS_ERRORS: dict[int, tuple[str, str, str]] = {
    400: (
        ErrorKind.BAD_REQUEST,
        "Bad Request",
        "The request was invalid. Please check your parameters.",
    ),
    401: (
        ErrorKind.UNAUTHORIZED,
        "Unauthorized",
        "Access token is invalid or expired. Please authenticate again.",
    ),
    403: (
        ErrorKind.FORBIDDEN,
        "Forbidden",
        "You do not have permission to perform this action.",
    ),
    404: (
        ErrorKind.NOT_FOUND,
        "Not Found",
        "The requested resource was not found.",
    ),
    422: (
        ErrorKind.VALIDATION_ERROR,
        "Validation Error",
        "The request data is invalid.",
    ),
    429: (
        ErrorKind.RATE_LIMITED,
        "Rate Limit Exceeded",
        "Too many requests. Please wait before trying again.",
    ),
}

_SERVER_ERROR = (
    ErrorKind.SERVER_ERROR,
    "Server Error",
    "The server encountered an error. Please try again later.",
)
for _status in (500, 502, 503, 504):
    STATUS_ERRORS[_status] = _SERVER_ERROR


# ---------------------------------------------------------------------------
# Failure inspection
# ---------------------------------------------------------------------------

def resolve_status(error: Exception) -> int | None:
    """
    Return the HTTP status carried by ``error``, or ``None``.

    Handles both already-normalized errors and ``requests`` exceptions that
    still hold the failed response.
    """
    if isinstance(error, HomebridgeError):
        return error.http_status

    response = getattr(error, "response", None)
    if response is not None:
        return getattr(response, "status_code", None)
    return None


def extract_response_body(error: Exception) -> Any:
    """
    Return the raw body of the failed response: decoded JSON when possible,
    otherwise text.  ``None`` when the failure carries no response.
    """
    response = getattr(error, "response", None)
    if response is None:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text or None


def _server_message(body: Any) -> str:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, list):
            return " ".join(str(m) for m in message)
        return str(message) if message else ""
    return ""


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def normalize_error(error: Exception, method: str, path: str) -> HomebridgeError:
    """
    Map a failure onto the error taxonomy.

    Called once per failed request, after the retry policy has given up.

    Args:
        error: Exception raised by the dispatcher (usually a
               ``requests.RequestException``).
        method: HTTP method of the failed request.
        path: Request path, used in the fallback message.

    Returns:
        A :class:`HomebridgeError`.  Errors that are already normalized are
        returned unchanged.
    """
    if isinstance(error, HomebridgeError):
        return error

    status = resolve_status(error)
    body = extract_response_body(error)

    if status in STATUS_ERRORS:
        kind, message, description = STATUS_ERRORS[status]
        if kind == ErrorKind.VALIDATION_ERROR:
            detail = _server_message(body)
            if detail:
                description = f"{description} {detail}"
    else:
        kind = ErrorKind.UNKNOWN
        message = f"{method.upper()} {path} Error"
        description = str(error) or error.__class__.__name__

    return HomebridgeError(
        kind,
        message,
        description,
        http_status=status,
        cause=body,
    )


def is_network_error(error: Exception) -> bool:
    """True for connection failures and timeouts that carry no HTTP status."""
    return (
        isinstance(error, (requests.ConnectionError, requests.Timeout))
        and resolve_status(error) is None
    )


def describe_failure(error: Exception) -> tuple[str, str]:
    """
    Return a ``(kind, message)`` pair for a per-item failure record.

    Exceptions that never went through :func:`normalize_error` are reported
    as ``UNKNOWN`` with their own text.
    """
    if isinstance(error, HomebridgeError):
        return error.kind, error.message
    return ErrorKind.UNKNOWN, str(error) or type(error).__name__

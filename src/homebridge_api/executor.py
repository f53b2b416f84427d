"""
Request construction, single-attempt dispatch, and the full request pipeline.

Design notes:
- dispatch_request performs exactly one HTTP attempt and knows nothing about
  retries; non-2xx statuses raise ``requests.HTTPError`` carrying the
  response so the retry policy can read the status code.
- execute_request is the pipeline used by every authenticated call:
  retry policy → dispatcher, then error normalization once retries are over.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import requests

from .config import DEFAULT_CONFIG, DEFAULT_HEADERS, ClientConfig
from .credentials import ConnectionSettings
from .errors import normalize_error
from .models import RequestDescriptor, normalize_path
from .retry import call_with_retry


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------

def build_request_headers(access_token: str) -> dict[str, str]:
    """
    Construct JSON and bearer-auth headers for an API call.

    Args:
        access_token: Resolved bearer token.

    Returns:
        Dict of HTTP header name → value pairs.
    """
    headers = dict(DEFAULT_HEADERS)
    headers["Authorization"] = f"Bearer {access_token}"
    return headers


def build_request_url(settings: ConnectionSettings, path: str) -> str:
    """Join the normalized base URL and a path with a guaranteed leading slash."""
    return f"{settings.base_url}{normalize_path(path)}"


def decode_response(response: requests.Response) -> Any:
    """
    Return the decoded JSON body.

    Empty bodies decode to ``{}``; plain-text bodies (log downloads and the
    like) are wrapped as ``{"data": text}``.
    """
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {"data": response.text}


# ---------------------------------------------------------------------------
# API call execution
# ---------------------------------------------------------------------------

def dispatch_request(
    request: RequestDescriptor,
    settings: ConnectionSettings,
    access_token: str,
    config: ClientConfig = DEFAULT_CONFIG,
) -> Any:
    """
    Send one HTTP request to the hub.

    Args:
        request: Method, path, body and query to send.
        settings: Connection settings supplying the base URL.
        access_token: Bearer token.
        config: Client configuration (timeout).

    Returns:
        Decoded JSON body (object or array).

    Raises:
        requests.HTTPError: On non-2xx status (the caller decides on retry).
        requests.RequestException: On transport failures.
    """
    kwargs: dict[str, Any] = {
        "headers": build_request_headers(access_token),
        "timeout": config.timeout_seconds,
    }
    if request.body is not None:
        kwargs["json"] = request.body
    if request.query:
        kwargs["params"] = request.query

    response = requests.request(
        request.method,
        build_request_url(settings, request.path),
        **kwargs,
    )
    response.raise_for_status()  # raises HTTPError for 4xx/5xx

    return decode_response(response)


def execute_request(
    request: RequestDescriptor,
    settings: ConnectionSettings,
    access_token: str,
    config: ClientConfig = DEFAULT_CONFIG,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Dispatch a request with retries and normalize any final failure.

    Args:
        request: Request to send.
        settings: Connection settings.
        access_token: Bearer token.
        config: Retry and timeout settings.
        sleep: Sleep function used for backoff waits.

    Returns:
        Decoded JSON body.

    Raises:
        HomebridgeError: Once retries are exhausted or the failure is not
            transient.
    """
    try:
        return call_with_retry(
            lambda: dispatch_request(request, settings, access_token, config),
            config=config,
            sleep=sleep,
        )
    except requests.RequestException as exc:
        raise normalize_error(exc, request.method, request.path) from exc

"""
Bearer-token resolution and the login call.

Token resolution order:
  1. explicit token parameter (manual field),
  2. first ``access_token`` found in upstream step outputs,
  3. failure with ``NO_ACCESS_TOKEN``.

Upstream payloads come in two shapes, a single record or a list of records.
Each is classified once by :func:`parse_upstream` into a :class:`Record` or
:class:`RecordList`; the resolver then asks every variant for its token.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, Union

import requests

from .config import DEFAULT_CONFIG, DEFAULT_HEADERS, LOGIN_PATH, ClientConfig
from .credentials import ConnectionSettings
from .errors import ErrorKind, HomebridgeError, extract_response_body, resolve_status

NO_ACCESS_TOKEN_MESSAGE = (
    "No access token available. Please either:\n"
    "1. Connect a Login node to this node, or\n"
    '2. Manually enter the access token in the "Access Token" field.'
)


# ---------------------------------------------------------------------------
# Upstream output variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Record:
    """A prior-step output that is a single JSON object."""

    data: Mapping[str, Any]

    def access_token(self) -> str | None:
        token = self.data.get("access_token")
        return str(token) if token else None


@dataclass(frozen=True)
class RecordList:
    """A prior-step output that is a JSON array; only the first element is read."""

    records: Sequence[Any]

    def access_token(self) -> str | None:
        if not self.records or not isinstance(self.records[0], Mapping):
            return None
        return Record(self.records[0]).access_token()


UpstreamOutput = Union[Record, RecordList]


def parse_upstream(items: Iterable[Any] | None) -> list[UpstreamOutput]:
    """
    Classify host items into upstream output variants.

    Host items wrap their payload under ``"json"``; bare payloads are accepted
    too.  Payloads that are neither an object nor an array are skipped.
    """
    outputs: list[UpstreamOutput] = []
    for item in items or ():
        payload = item.get("json", item) if isinstance(item, Mapping) else item
        if isinstance(payload, Mapping):
            outputs.append(Record(payload))
        elif isinstance(payload, (list, tuple)):
            outputs.append(RecordList(payload))
    return outputs


def resolve_access_token(
    explicit_token: str | None,
    upstream: Iterable[UpstreamOutput] = (),
) -> str:
    """
    Return the bearer token for this invocation.

    No network calls are made; this is a lookup over data that is already
    available.

    Args:
        explicit_token: Manually supplied token; wins whenever non-empty.
        upstream: Prior-step outputs, scanned in order.

    Returns:
        Token string.

    Raises:
        HomebridgeError: ``NO_ACCESS_TOKEN`` if no source yields a token.
    """
    if explicit_token:
        return explicit_token

    for output in upstream:
        token = output.access_token()
        if token:
            return token

    raise HomebridgeError(
        ErrorKind.NO_ACCESS_TOKEN,
        NO_ACCESS_TOKEN_MESSAGE,
        description="Chain a Login step or supply the access token manually.",
    )


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

def build_login_payload(settings: ConnectionSettings, one_time_code: str | None = None) -> dict:
    payload = {"username": settings.username, "password": settings.password}
    otp = one_time_code or settings.one_time_code
    if otp:
        payload["otp"] = otp
    return payload


def authenticate(
    settings: ConnectionSettings,
    one_time_code: str | None = None,
    config: ClientConfig = DEFAULT_CONFIG,
) -> str:
    """
    Log in and return the access token.

    Performs exactly one POST; login failures are never retried.

    Args:
        settings: Validated connection settings.
        one_time_code: Optional 2FA code; overrides the one in ``settings``.
        config: Client configuration (timeout).

    Returns:
        The ``access_token`` from the login response.

    Raises:
        HomebridgeError: ``AUTHENTICATION_FAILED`` on HTTP 401, ``API_ERROR``
            on any other failure or when no token is returned.
    """
    try:
        response = requests.post(
            f"{settings.base_url}{LOGIN_PATH}",
            headers=dict(DEFAULT_HEADERS),
            json=build_login_payload(settings, one_time_code),
            timeout=config.timeout_seconds,
        )
        response.raise_for_status()
        data = response.json()
    except requests.JSONDecodeError as exc:
        raise HomebridgeError(
            ErrorKind.API_ERROR,
            "Login response was not valid JSON",
            str(exc),
        ) from exc
    except requests.RequestException as exc:
        status = resolve_status(exc)
        if status == 401:
            raise HomebridgeError(
                ErrorKind.AUTHENTICATION_FAILED,
                "Authentication failed",
                "Invalid username, password, or code. Please check your credentials.",
                http_status=401,
                cause=extract_response_body(exc),
            ) from exc
        raise HomebridgeError(
            ErrorKind.API_ERROR,
            str(exc) or "Login request failed",
            "The login request to the Homebridge API failed.",
            http_status=status,
            cause=extract_response_body(exc),
        ) from exc

    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        raise HomebridgeError(
            ErrorKind.API_ERROR,
            "Login successful but no access token received",
            "The Homebridge API did not return an access token.",
            cause=data,
        )

    print(f"  Authenticated as '{settings.username}' at {settings.base_url}")
    return str(token)

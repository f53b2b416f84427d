"""
Shared pytest fixtures and response builders for the request pipeline tests.

HTTP is never touched: tests patch ``requests.request`` / ``requests.post``
and feed them real ``requests.Response`` objects built by
:func:`make_response`, so ``raise_for_status()`` and ``json()`` behave
exactly as they do against a live hub.
"""

from __future__ import annotations

import json

import pytest
import requests

from homebridge_api.config import ClientConfig
from homebridge_api.credentials import ConnectionSettings


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------

def make_response(
    status: int = 200,
    body=None,
    url: str = "http://host:8581/api",
    text: str | None = None,
) -> requests.Response:
    """Build a ``requests.Response`` with a JSON (or raw text) body."""
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.encoding = "utf-8"
    if text is not None:
        response._content = text.encode("utf-8")
    elif body is None:
        response._content = b""
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response


def http_error(status: int, body=None) -> requests.HTTPError:
    """An HTTPError carrying a response with ``status``."""
    return requests.HTTPError(f"{status} Error", response=make_response(status, body))


class RecordingSleep:
    """Sleep stand-in that records the requested durations (seconds)."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def calls_ms(self) -> list[int]:
        return [round(s * 1000) for s in self.calls]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    """Connection settings for the hub used in the end-to-end scenario."""
    return ConnectionSettings(
        base_url="http://host:8581",
        username="admin",
        password="secret",
    )


@pytest.fixture
def raw_credentials():
    """Credential mapping as the host credential store supplies it."""
    return {
        "serverUrl": "http://host:8581/",
        "username": "admin",
        "password": "secret",
        "otp": "",
    }


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def config():
    """Default retry schedule with a small page cap for pagination tests."""
    return ClientConfig(max_pages=5)

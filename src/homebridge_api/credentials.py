"""
Connection settings: validation, normalization, and environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .config import ENV_OTP, ENV_PASSWORD, ENV_SERVER_URL, ENV_USERNAME
from .errors import ErrorKind, HomebridgeError


@dataclass(frozen=True)
class ConnectionSettings:
    """Validated connection settings for one workflow execution."""

    base_url: str
    username: str
    password: str
    one_time_code: str | None = None


# (setting name, accepted keys in the raw mapping, message)
_REQUIRED_FIELDS: tuple[tuple[str, tuple[str, ...], str], ...] = (
    ("base_url", ("base_url", "serverUrl"), "Server URL is required in Homebridge credentials."),
    ("username", ("username",), "Username is required in Homebridge credentials."),
    ("password", ("password",), "Password is required in Homebridge credentials."),
)


def _first_value(raw: Mapping, keys: tuple[str, ...]) -> str:
    for key in keys:
        value = raw.get(key)
        if value:
            return str(value)
    return ""


def normalize_base_url(url: str) -> str:
    """Strip exactly one trailing slash, if present."""
    return url[:-1] if url.endswith("/") else url


def resolve_credentials(raw: Mapping | None) -> ConnectionSettings:
    """
    Validate raw connection configuration and return ConnectionSettings.

    Accepts both the host's credential field names (``serverUrl``, ``otp``)
    and the settings names (``base_url``, ``one_time_code``).

    Args:
        raw: Mapping supplied by the host credential store.

    Returns:
        Frozen :class:`ConnectionSettings`.

    Raises:
        HomebridgeError: ``MISSING_CREDENTIAL`` naming the first missing field,
            checked in the order base_url, username, password.
    """
    if raw is None:
        raise HomebridgeError(
            ErrorKind.MISSING_CREDENTIAL,
            "No Homebridge credentials found. Please configure credentials first.",
        )

    values: dict[str, str] = {}
    for name, keys, message in _REQUIRED_FIELDS:
        value = _first_value(raw, keys)
        if name == "base_url":
            value = normalize_base_url(value)
        if not value:
            raise HomebridgeError(ErrorKind.MISSING_CREDENTIAL, message, description=name)
        values[name] = value

    one_time_code = _first_value(raw, ("one_time_code", "otp")) or None

    return ConnectionSettings(
        base_url=values["base_url"],
        username=values["username"],
        password=values["password"],
        one_time_code=one_time_code,
    )


def load_credentials_from_env() -> ConnectionSettings:
    """
    Build ConnectionSettings from ``HOMEBRIDGE_URL``, ``HOMEBRIDGE_USERNAME``,
    ``HOMEBRIDGE_PASSWORD`` and the optional ``HOMEBRIDGE_OTP``.
    """
    return resolve_credentials({
        "base_url": os.getenv(ENV_SERVER_URL, ""),
        "username": os.getenv(ENV_USERNAME, ""),
        "password": os.getenv(ENV_PASSWORD, ""),
        "one_time_code": os.getenv(ENV_OTP, ""),
    })

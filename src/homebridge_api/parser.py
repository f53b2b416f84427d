"""
Parameter parsing, required-parameter validation, output simplification,
and format validators.

No I/O occurs here; all functions are pure transformations of strings/dicts
to support easy unit testing.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping
from urllib.parse import urlparse

from .config import SIMPLIFY_STRIPPED_FIELDS
from .errors import ErrorKind, HomebridgeError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

def parse_json_parameter(value: Any, parameter_name: str) -> Any:
    """
    Parse a JSON parameter supplied as text.

    Values that are already decoded (dict/list) pass through unchanged.
    Markdown code fences are stripped before parsing so that JSON pasted
    from chat or docs still works.

    Args:
        value: Raw parameter value.
        parameter_name: Name used in the error message.

    Returns:
        Decoded JSON value.

    Raises:
        HomebridgeError: ``INVALID_PARAMETER`` when the text is not valid JSON.
    """
    if isinstance(value, (dict, list)):
        return value

    content = str(value or "").strip()
    if content.startswith("```"):
        content = re.sub(r"^```(?:json)?\n?", "", content)
        content = re.sub(r"\n?```$", "", content)
        content = content.strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise HomebridgeError(
            ErrorKind.INVALID_PARAMETER,
            f'Invalid JSON in parameter "{parameter_name}". Please ensure it\'s valid JSON.',
            description=str(exc),
        ) from exc


def is_missing(value: Any) -> bool:
    return value is None or value == ""


def validate_required_parameters(parameters: Mapping[str, Any]) -> None:
    """
    Raise ``INVALID_PARAMETER`` for the first parameter that is ``None`` or ``""``.

    ``False`` and ``0`` count as supplied.
    """
    for key, value in parameters.items():
        if is_missing(value):
            raise HomebridgeError(
                ErrorKind.INVALID_PARAMETER,
                f'Required parameter "{key}" is missing or empty.',
                description=key,
            )


# ---------------------------------------------------------------------------
# Output shaping
# ---------------------------------------------------------------------------

def simplify_item(item: Any) -> Any:
    if not isinstance(item, dict):
        return item
    return {k: v for k, v in item.items() if k not in SIMPLIFY_STRIPPED_FIELDS}


def simplify_output(data: Any) -> Any:
    """
    Drop database bookkeeping fields (``__v``, ``_id``, ``createdAt``,
    ``updatedAt``) from an object or from each object in an array.
    """
    if isinstance(data, list):
        return [simplify_item(item) for item in data]
    return simplify_item(data)


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

def is_valid_url(url: str) -> bool:
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def is_valid_port(port: Any) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535


def is_valid_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value or ""))

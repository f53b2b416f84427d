"""
Request descriptor shared by the dispatcher, batch runner and catalog.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .config import HTTP_METHODS
from .errors import ErrorKind, HomebridgeError


def normalize_path(path: str) -> str:
    """Guarantee a leading slash."""
    return path if path.startswith("/") else "/" + path


@dataclass(frozen=True)
class RequestDescriptor:
    """
    One HTTP request against the hub.

    ``body`` is usually a mapping; a few endpoints take a JSON array.
    ``method`` is upper-cased and ``path`` is given a leading slash on
    construction.
    """

    method: str
    path: str
    body: Any = None
    query: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        method = self.method.upper()
        if method not in HTTP_METHODS:
            raise HomebridgeError(
                ErrorKind.INVALID_PARAMETER,
                f"Unsupported HTTP method '{self.method}'.",
                description=f"Expected one of {sorted(HTTP_METHODS)}.",
            )
        # frozen: assign through object.__setattr__
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "path", normalize_path(self.path))
        object.__setattr__(self, "query", dict(self.query or {}))

    def with_query(self, **params: Any) -> "RequestDescriptor":
        """Return a copy with ``params`` merged over the existing query."""
        return RequestDescriptor(
            method=self.method,
            path=self.path,
            body=self.body,
            query={**self.query, **params},
        )

"""
API paths, retry schedule, pagination defaults, and client configuration.

All constants used across the request pipeline are centralized here so that
config is separated from logic.  ``ClientConfig`` bundles the tunable values
into one immutable object that callers build once per session and pass
explicitly into the dispatcher, retry policy and pagination helper.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# API paths
# ---------------------------------------------------------------------------

API_BASE_PATH = "/api"
LOGIN_PATH = f"{API_BASE_PATH}/auth/login"

# Headers sent with every request; the bearer header is added per call.
DEFAULT_HEADERS: dict[str, str] = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}

HTTP_METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

# ---------------------------------------------------------------------------
# Credential environment variables
# ---------------------------------------------------------------------------

ENV_SERVER_URL = "HOMEBRIDGE_URL"
ENV_USERNAME = "HOMEBRIDGE_USERNAME"
ENV_PASSWORD = "HOMEBRIDGE_PASSWORD"
ENV_OTP = "HOMEBRIDGE_OTP"

# ---------------------------------------------------------------------------
# Execution parameters
# ---------------------------------------------------------------------------

REQUEST_TIMEOUT_SECONDS: int = 30
MAX_RETRIES: int = 3              # retries after the first attempt (4 total)
RETRY_DELAY_MS: int = 1000        # base delay; doubled on every retry
RETRY_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

PAGE_SIZE: int = 100
MAX_PAGES: int = 100              # guards against servers that never return a short page

# ---------------------------------------------------------------------------
# Output shaping
# ---------------------------------------------------------------------------

# Bookkeeping fields removed by simplify_output()
SIMPLIFY_STRIPPED_FIELDS: tuple[str, ...] = ("__v", "_id", "updatedAt", "createdAt")

METADATA_KEY = "_metadata"


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable pipeline settings.

    Attributes:
        timeout_seconds: Per-request HTTP timeout.
        max_retries: Retries allowed after the first attempt.
        retry_delay_ms: Base backoff delay; attempt ``n`` waits
            ``retry_delay_ms * 2**n``.
        retry_status_codes: HTTP statuses treated as transient.
        retry_network_errors: Retry connection errors and timeouts that
            carry no HTTP status under the same schedule.
        page_size: Items requested per page by the pagination helper.
        max_pages: Hard cap on pages fetched by one paginated call.
    """

    timeout_seconds: int = REQUEST_TIMEOUT_SECONDS
    max_retries: int = MAX_RETRIES
    retry_delay_ms: int = RETRY_DELAY_MS
    retry_status_codes: frozenset[int] = RETRY_STATUS_CODES
    retry_network_errors: bool = True
    page_size: int = PAGE_SIZE
    max_pages: int = MAX_PAGES


DEFAULT_CONFIG = ClientConfig()

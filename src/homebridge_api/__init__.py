"""
homebridge_api — Homebridge UI REST API access for workflow automation.

Module layout
-------------
config.py       — API paths, retry schedule, pagination defaults, ClientConfig
errors.py       — ErrorKind taxonomy, HomebridgeError, error normalization
credentials.py  — ConnectionSettings validation and environment loading
auth.py         — bearer-token resolution (manual / upstream) and login
models.py       — RequestDescriptor
retry.py        — retry eligibility, exponential backoff, retry wrapper
executor.py     — header/URL construction, single dispatch, request pipeline
parser.py       — JSON parameters, required-parameter checks, simplification
catalog.py      — (resource, operation) → request template table
batch.py        — sequential batches, pagination, batch summaries
operations.py   — per-item execution with metadata and continue-on-fail

Public interface
----------------
Run a catalog operation for every input item:
    execute_items(items, resource, operation, credentials, params)

Log in and call the API directly:
    settings = resolve_credentials(raw)
    token = authenticate(settings)
    execute_request(RequestDescriptor("GET", "/api/accessories"), settings, token)

Run many requests, or every page of one:
    run_batch(requests, settings, token)
    paginate(request, settings, token, limit=150)
"""

from .auth import authenticate, parse_upstream, resolve_access_token
from .batch import paginate, run_batch, summarize_batch
from .catalog import build_request, list_operations
from .config import DEFAULT_CONFIG, ClientConfig
from .credentials import ConnectionSettings, load_credentials_from_env, resolve_credentials
from .errors import ErrorKind, HomebridgeError, describe_failure, normalize_error
from .executor import dispatch_request, execute_request
from .models import RequestDescriptor
from .operations import execute_items, execute_operation

__all__ = [
    # Configuration and credentials
    "ClientConfig",
    "DEFAULT_CONFIG",
    "ConnectionSettings",
    "resolve_credentials",
    "load_credentials_from_env",
    # Authentication
    "authenticate",
    "resolve_access_token",
    "parse_upstream",
    # Requests
    "RequestDescriptor",
    "dispatch_request",
    "execute_request",
    "build_request",
    "list_operations",
    # Batches
    "run_batch",
    "paginate",
    "summarize_batch",
    # Operations
    "execute_operation",
    "execute_items",
    # Errors
    "ErrorKind",
    "HomebridgeError",
    "normalize_error",
    "describe_failure",
]

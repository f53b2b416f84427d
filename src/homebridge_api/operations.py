"""
Per-item operation execution for the workflow host.

For every input item the host hands over, this module:
  1. resolves connection settings,
  2. runs ``auth/login`` through :func:`auth.authenticate`, or resolves a
     bearer token and sends the catalog request through the pipeline,
  3. simplifies the response and attaches ``_metadata``.

By default the first failing item aborts the run.  With
``continue_on_fail`` the error is recorded next to its metadata and the
next item is processed.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence

from .auth import UpstreamOutput, authenticate, parse_upstream, resolve_access_token
from .catalog import build_request, get_operation
from .config import DEFAULT_CONFIG, METADATA_KEY, ClientConfig
from .credentials import ConnectionSettings, resolve_credentials
from .errors import describe_failure
from .executor import execute_request
from .parser import simplify_output


def build_metadata(resource: str, operation: str, success: bool) -> dict:
    return {
        "resource": resource,
        "operation": operation,
        "executed_at": datetime.now(timezone.utc).isoformat(),
        "success": success,
    }


def execute_operation(
    resource: str,
    operation: str,
    params: Mapping[str, Any],
    settings: ConnectionSettings,
    upstream: Sequence[UpstreamOutput] = (),
    config: ClientConfig = DEFAULT_CONFIG,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Run one catalog operation and return the raw response data.

    ``params["accessToken"]`` is the manual token field; when empty, the
    token is looked up in ``upstream``.  The login operation ignores both and
    authenticates with ``settings`` (``params["otp"]`` overrides the stored
    one-time code).

    Raises:
        HomebridgeError: On any pre-network or normalized request failure.
    """
    spec = get_operation(resource, operation)

    if not spec.authenticated:
        token = authenticate(settings, params.get("otp"), config)
        return {"access_token": token, "token_type": "Bearer", "success": True}

    token = resolve_access_token(params.get("accessToken"), upstream)
    request = build_request(resource, operation, params)
    return execute_request(request, settings, token, config, sleep)


def annotate(data: Any, resource: str, operation: str) -> dict:
    """Attach success metadata; array responses are wrapped under ``data``."""
    payload = dict(data) if isinstance(data, Mapping) else {"data": data}
    payload[METADATA_KEY] = build_metadata(resource, operation, True)
    return payload


def execute_items(
    items: Sequence[Any],
    resource: str,
    operation: str,
    credentials: Mapping[str, Any] | None,
    params: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None = None,
    continue_on_fail: bool = False,
    simplify: bool = True,
    config: ClientConfig = DEFAULT_CONFIG,
    sleep: Callable[[float], None] = time.sleep,
) -> list[dict]:
    """
    Execute an operation once per input item.

    Args:
        items: Upstream host items (``{"json": payload}`` or bare payloads);
            also scanned for ``access_token``.  An empty list runs once.
        resource: Catalog resource.
        operation: Catalog operation.
        credentials: Raw credential mapping from the host.
        params: One mapping shared by all items, or one mapping per item.
        continue_on_fail: Record failures instead of raising.
        simplify: Strip bookkeeping fields from responses.
        config: Client configuration.
        sleep: Sleep function used for backoff waits.

    Returns:
        One output dict per item, in input order.

    Raises:
        HomebridgeError: The first failure, unless ``continue_on_fail``.
    """
    items = list(items) or [{}]
    if params is None or isinstance(params, Mapping):
        params_list = [dict(params or {})] * len(items)
    else:
        params_list = [dict(p) for p in params]
        if len(params_list) != len(items):
            raise ValueError(
                f"Got {len(params_list)} parameter sets for {len(items)} items."
            )

    upstream = parse_upstream(items)
    outputs: list[dict] = []

    for idx, item_params in enumerate(params_list):
        try:
            settings = resolve_credentials(credentials)
            data = execute_operation(
                resource, operation, item_params, settings, upstream, config, sleep,
            )
            if simplify:
                data = simplify_output(data)
            outputs.append(annotate(data, resource, operation))
        except Exception as exc:
            if not continue_on_fail:
                raise
            kind, message = describe_failure(exc)
            print(f"  Item {idx} failed [{kind}]: {message}")
            outputs.append({
                "error": message,
                METADATA_KEY: build_metadata(resource, operation, False),
            })

    return outputs

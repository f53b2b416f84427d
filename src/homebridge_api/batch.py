"""
Sequential batch execution, pagination, and batch result summaries.

Design notes:
- run_batch executes requests strictly one after another so that result
  index i always corresponds to input index i, and so that an embedded hub
  never sees concurrent connections from one batch.
- A failed item is recorded and the batch moves on; one failure never
  aborts the rest.
- paginate stops on a short page or once the caller's limit is reached, and
  refuses to run past ``config.max_pages``.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Callable, Iterable

import pandas as pd

from .config import DEFAULT_CONFIG, ClientConfig
from .credentials import ConnectionSettings
from .errors import ErrorKind, HomebridgeError, describe_failure
from .executor import execute_request
from .models import RequestDescriptor


def run_batch(
    requests: Iterable[RequestDescriptor],
    settings: ConnectionSettings,
    access_token: str,
    config: ClientConfig = DEFAULT_CONFIG,
    sleep: Callable[[float], None] = time.sleep,
) -> list[dict]:
    """
    Execute requests sequentially with per-item failure isolation.

    Each request goes through the full pipeline (retry policy → dispatcher
    → error normalizer).

    Args:
        requests: Ordered request descriptors.
        settings: Connection settings.
        access_token: Bearer token shared by every request.
        config: Retry and timeout settings.
        sleep: Sleep function used for backoff waits.

    Returns:
        One dict per input request, in input order:
        ``{"success": True, "data": ...}`` or
        ``{"success": False, "error": message}``.
    """
    requests = list(requests)
    batch_start = datetime.now()
    results: list[dict] = []

    print(f"\nStarting batch: {len(requests)} requests\n")

    for idx, request in enumerate(requests, start=1):
        print(f"[{idx}/{len(requests)}] {request.method} {request.path}")
        try:
            data = execute_request(request, settings, access_token, config, sleep)
        except Exception as exc:
            kind, message = describe_failure(exc)
            print(f"  Failed [{kind}]: {message}")
            results.append({"success": False, "error": message})
            continue
        results.append({"success": True, "data": data})

    succeeded = sum(1 for r in results if r["success"])
    duration = (datetime.now() - batch_start).total_seconds()

    sep = "=" * 60
    print(f"\n{sep}")
    print("BATCH COMPLETE")
    print(f"  Attempted: {len(results):,}")
    print(f"  Succeeded: {succeeded:,}")
    print(f"  Failed:    {len(results) - succeeded:,}")
    print(f"  Duration:  {duration:.1f} s")
    print(f"{sep}\n")

    return results


def paginate(
    request: RequestDescriptor,
    settings: ConnectionSettings,
    access_token: str,
    config: ClientConfig = DEFAULT_CONFIG,
    limit: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[Any]:
    """
    Fetch every page of a GET endpoint and concatenate the items.

    Pages are requested with ``page`` (starting at 1) and
    ``limit = config.page_size`` merged into the request's query.

    Args:
        request: Base GET request.
        settings: Connection settings.
        access_token: Bearer token.
        config: Page size, page cap, retry settings.
        limit: Maximum number of items to return; ``None`` or any value
            below 1 returns all.
        sleep: Sleep function used for backoff waits.

    Returns:
        Concatenated items, truncated to ``limit`` when one is given.

    Raises:
        HomebridgeError: ``INVALID_PARAMETER`` for non-GET requests,
            ``PAGINATION_LIMIT`` when more than ``config.max_pages`` pages
            would be needed, or any normalized request failure.
    """
    if request.method != "GET":
        raise HomebridgeError(
            ErrorKind.INVALID_PARAMETER,
            f"Pagination requires a GET request, got {request.method}.",
        )

    items: list[Any] = []
    page = 1

    while True:
        if page > config.max_pages:
            raise HomebridgeError(
                ErrorKind.PAGINATION_LIMIT,
                "Pagination limit exceeded",
                f"{request.path} returned full pages for {config.max_pages} pages; "
                "stopping to avoid an unbounded loop.",
            )

        response = execute_request(
            request.with_query(page=page, limit=config.page_size),
            settings,
            access_token,
            config,
            sleep,
        )
        page_items = response if isinstance(response, list) else [response]
        items.extend(page_items)

        if limit is not None and limit > 0 and len(items) >= limit:
            return items[:limit]

        if len(page_items) < config.page_size:
            return items

        page += 1


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def batch_results_to_frame(
    results: list[dict],
    requests: list[RequestDescriptor] | None = None,
) -> pd.DataFrame:
    """
    Tabulate batch results, one row per item.

    Columns: ``position``, ``success``, ``error`` and, when the original
    requests are given, ``method`` and ``path``.
    """
    df = pd.DataFrame({
        "position": range(1, len(results) + 1),
        "success": [bool(r.get("success")) for r in results],
        "error": [r.get("error") for r in results],
    })
    if requests is not None:
        df["method"] = [r.method for r in requests]
        df["path"] = [r.path for r in requests]
    return df


def summarize_batch(
    results: list[dict],
    requests: list[RequestDescriptor] | None = None,
) -> dict:
    """
    Report succeeded/failed counts for a finished batch.

    Returns:
        Dict with keys ``total``, ``succeeded``, ``failed``,
        ``success_pct`` and ``failures_by_path`` (empty unless ``requests``
        is given).
    """
    df = batch_results_to_frame(results, requests)
    total = len(df)
    succeeded = int(df["success"].sum()) if total else 0

    failures_by_path: dict[str, int] = {}
    if requests is not None and total:
        failed = df[~df["success"]]
        failures_by_path = {
            str(path): int(n) for path, n in failed.groupby("path").size().items()
        }

    return {
        "total": total,
        "succeeded": succeeded,
        "failed": total - succeeded,
        "success_pct": round(succeeded / total * 100, 1) if total else 0.0,
        "failures_by_path": failures_by_path,
    }

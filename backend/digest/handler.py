"""
Authenticated entry point for the digest batch.

Framework-agnostic: a web route or serverless function passes the request's
Authorization header and optional cursor, and returns the status code and
JSON body produced here.
"""

import hmac
from typing import Any

from config.settings import DispatchSettings, load_settings
from digest.run_digest_batch import DigestPipeline, build_pipeline

RESULT_FIELDS = {"processed", "successful", "failed", "skipped", "errors", "status"}


def is_authorized(authorization: str | None, secret: str | None) -> bool:
    """Check a `Bearer <secret>` header in constant time. An unset secret rejects everything."""
    if not secret or not authorization:
        return False
    return hmac.compare_digest(authorization.encode(), f"Bearer {secret}".encode())


def parse_cursor(raw: Any) -> int:
    """
    Parse a continuation cursor from a query parameter or JSON body.

    Raises:
        ValueError: If the cursor is not a non-negative integer
    """
    if raw is None or raw == "":
        return 0
    if isinstance(raw, bool):
        raise ValueError(f"Invalid cursor: {raw!r}")
    cursor = int(raw)
    if cursor < 0:
        raise ValueError(f"Invalid cursor: {raw!r}")
    return cursor


def handle_send_digests(
    authorization: str | None,
    cursor: Any = None,
    pipeline: DigestPipeline | None = None,
    settings: DispatchSettings | None = None,
) -> tuple[int, dict[str, Any]]:
    """
    Run one digest batch.

    Returns:
        Tuple of (HTTP status code, JSON-serializable response body)
    """
    settings = settings or load_settings()

    if not is_authorized(authorization, settings.cron_secret):
        return 401, {"error": "Unauthorized"}

    try:
        start_cursor = parse_cursor(cursor)
    except (TypeError, ValueError):
        return 400, {"error": "Invalid cursor", "details": str(cursor)}

    pipeline = pipeline or build_pipeline(settings)
    report = pipeline.run(start_cursor)
    result = report.result

    results_body = result.model_dump(mode="json", include=RESULT_FIELDS)

    if report.fatal_error is not None:
        return 500, {
            "error": report.message,
            "details": report.fatal_error,
            "results": results_body,
            "executionTimeMs": result.execution_time_ms,
        }

    body: dict[str, Any] = {
        "message": report.message,
        "results": results_body,
        "executionTimeMs": result.execution_time_ms,
        "cursor": start_cursor,
    }
    if result.next_cursor is not None:
        body["remaining"] = report.remaining
        body["nextCursor"] = result.next_cursor
        body["nextBatchTriggered"] = bool(result.next_batch_triggered)

    return 200, body

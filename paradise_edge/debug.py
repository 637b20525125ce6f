"""Debug logging utilities for the edge proxy."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger("paradise_edge")

BODY_PREVIEW_BYTES = 200


def format_json(body: bytes | str) -> str:
    """Format JSON with indentation.

    Args:
        body: JSON content as bytes or string

    Returns:
        Pretty-formatted JSON string, or the input as text if it isn't JSON
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    try:
        return json.dumps(json.loads(body), indent=2, ensure_ascii=False)
    except ValueError:
        return body


def is_json_content(content_type: str | None) -> bool:
    """Check if content type is JSON."""
    if not content_type:
        return False
    return "json" in content_type.lower()


def _log_headers(headers: dict[str, Any], interesting: list[str]) -> None:
    logger.info("Headers:")
    for header in interesting:
        value = headers.get(header.lower(), headers.get(header))
        if value:
            logger.info(f"  {header}: {value}")


def _log_body(title: str, headers: dict[str, Any], body: bytes) -> None:
    logger.info("-" * 80)
    logger.info(f"{title}:")

    if is_json_content(headers.get("content-type", "")):
        for line in format_json(body).split("\n"):
            if line.strip():
                logger.info(f"  {line}")
    else:
        preview = body[:BODY_PREVIEW_BYTES].decode("utf-8", errors="replace")
        logger.info(f"  [{len(body)} bytes] {preview}")
        if len(body) > BODY_PREVIEW_BYTES:
            logger.info(f"  ... ({len(body) - BODY_PREVIEW_BYTES} more bytes)")


def log_request(method: str, path: str, headers: dict[str, str], query: str = "") -> None:
    """Log an incoming HTTP request.

    Args:
        method: HTTP method
        path: Request path
        headers: Request headers
        query: Raw query string
    """
    target = f"{path}?{query}" if query else path
    logger.info("=" * 80)
    logger.info(f">>> INCOMING REQUEST: {method} {target}")
    logger.info("-" * 80)
    _log_headers(headers, ["Origin", "Referer", "User-Agent", "Accept"])
    logger.info("=" * 80)


def log_response(status_code: int, headers: dict[str, Any], body: bytes | None) -> None:
    """Log an outgoing HTTP response.

    Args:
        status_code: HTTP status code
        headers: Response headers
        body: Response body (if any)
    """
    logger.info("=" * 80)
    logger.info(f"<<< OUTGOING RESPONSE: {status_code}")
    logger.info("-" * 80)
    _log_headers(
        headers,
        [
            "Content-Type",
            "Content-Length",
            "Cache-Control",
            "Location",
            "Access-Control-Allow-Origin",
            "X-Paradise-Click",
        ],
    )
    if body:
        _log_body("Response Body", headers, body)
    logger.info("=" * 80)
    logger.info("")  # Empty line for readability


def setup_debug_logging() -> None:
    """Configure debug logging for the edge proxy."""
    logger.setLevel(logging.DEBUG)

    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)

    # Simple format - just the message (since we format the logs ourselves)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)

    # Prevent propagation to avoid duplicate logs
    logger.propagate = False

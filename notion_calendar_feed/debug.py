"""Debug logging utilities for the calendar feed server."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger("notion_calendar_feed")
notion_logger = logging.getLogger("notion_calendar_feed.notion")

CONSOLE_HANDLER_NAME = "notion_calendar_feed.console"


def log_request(method: str, path: str, headers: dict[str, str]) -> None:
    """Log an incoming feed request.

    Args:
        method: HTTP method
        path: Request path (including query string)
        headers: Request headers
    """
    logger.debug("=" * 80)
    logger.debug(f">>> INCOMING REQUEST: {method} {path}")

    interesting_headers = ["Accept", "User-Agent", "Authorization"]
    for header in interesting_headers:
        value = headers.get(header.lower(), headers.get(header))
        if value:
            if header == "Authorization":
                value = "[REDACTED]"
            logger.debug(f"  {header}: {value}")


def log_response(status_code: int, media_type: str | None, body_size: int) -> None:
    """Log an outgoing feed response.

    Args:
        status_code: HTTP status code
        media_type: Response content type
        body_size: Response body length in bytes
    """
    logger.debug(f"<<< OUTGOING RESPONSE: {status_code} [{media_type}] {body_size} bytes")
    logger.debug("=" * 80)


def log_notion_request(method: str, url: str, headers: dict[str, Any], body: Any) -> None:
    """Log an outgoing Notion API request in JSON format.

    Args:
        method: HTTP method
        url: Request URL
        headers: Request headers
        body: Request body (dict, list, or None)
    """
    request_data = {
        "type": "request",
        "method": method,
        "url": url,
        "headers": {
            k: "[REDACTED]" if k.lower() == "authorization" else v for k, v in headers.items()
        },
    }

    if body is not None:
        request_data["body"] = body

    notion_logger.info(json.dumps(request_data, indent=2, ensure_ascii=False))


def log_notion_response(status_code: int, body: Any) -> None:
    """Log an incoming Notion API response in JSON format.

    Args:
        status_code: HTTP status code
        body: Response body (dict, list, or raw text)
    """
    response_data: dict[str, Any] = {
        "type": "response",
        "status_code": status_code,
    }

    if body is not None:
        response_data["body"] = body

    notion_logger.info(json.dumps(response_data, indent=2, ensure_ascii=False))


def _attach_console_handler(target: logging.Logger) -> None:
    target.setLevel(logging.DEBUG)
    if any(h.get_name() == CONSOLE_HANDLER_NAME for h in target.handlers):
        return

    # Simple format - just the message (since we format the logs ourselves)
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.set_name(CONSOLE_HANDLER_NAME)
    target.addHandler(handler)

    # Prevent propagation to avoid duplicate logs
    target.propagate = False


def setup_logging(level: int = logging.INFO) -> None:
    """Configure the package logger for normal (non-debug) operation."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def setup_debug_logging() -> None:
    """Configure debug logging for the feed server."""
    _attach_console_handler(logger)


def setup_notion_debug_logging() -> None:
    """Configure debug logging for Notion API requests/responses."""
    _attach_console_handler(notion_logger)

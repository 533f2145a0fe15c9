"""Process-wide configuration for the calendar feed service.

A single FeedConfig is built at startup (usually via FeedConfig.from_env())
and handed to the service, the HTTP app and the bulk regenerator.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .notion_api_client import NotionConfig


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class FeedConfig:
    """Configuration for feed generation and bulk regeneration."""

    notion: NotionConfig = field(default_factory=NotionConfig)

    # Notion databases
    calendar_data_database_id: str = ""

    # Formula properties on the person page
    full_name_property: str = "Full Name"
    feed_json_property: str = "Calendar Feed JSON"
    hotels_json_property: str = "Hotels JSON"
    personnel_relation_property: str = "Personnel"

    calendar_name_suffix: str = "Downbeat Events"

    # Bulk regeneration
    feed_base_url: str = "http://127.0.0.1:8080"
    batch_size: int = 100
    batch_pause_seconds: float = 5.0

    debug: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> FeedConfig:
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            FeedConfig with defaults for every unset variable
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        notion = NotionConfig(
            api_key=env.get("NOTION_API_KEY", ""),
            base_url=env.get("NOTION_BASE_URL", defaults.notion.base_url),
            notion_version=env.get("NOTION_VERSION", defaults.notion.notion_version),
            timeout=float(env.get("NOTION_TIMEOUT", defaults.notion.timeout)),
        )

        return cls(
            notion=notion,
            calendar_data_database_id=env.get("CALENDAR_DATA_DATABASE_ID", ""),
            feed_base_url=env.get("FEED_BASE_URL", defaults.feed_base_url).rstrip("/"),
            batch_size=int(env.get("BATCH_SIZE", defaults.batch_size)),
            batch_pause_seconds=float(
                env.get("BATCH_PAUSE_SECONDS", defaults.batch_pause_seconds)
            ),
            debug=_env_flag(env.get("FEED_DEBUG")),
        )

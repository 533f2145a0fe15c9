"""Feed generation for one person: fetch, flatten, assemble.

The person's schedule lives in a formula property of their Notion page as a
JSON string. Each call fetches it fresh; nothing is cached between requests.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from .config import FeedConfig
from .entries import CalendarEntry
from .errors import MalformedUpstreamDataError, PersonNotFoundError
from .event_flattener import ScheduleFlattener
from .feed_assembler import FeedAssembler, FeedDocument, FeedFormat
from .notion_api_client import NotionAPIClient, formula_string

logger = logging.getLogger(__name__)

_BARE_HEX_ID_RE = re.compile(r"^[0-9a-fA-F]{32}$")
_HYPHENATED_ID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

UNKNOWN_PERSON_NAME = "Unknown"


def canonicalize_person_id(person_id: str) -> str:
    """Convert a person identifier to the hyphenated 8-4-4-4-12 form.

    Args:
        person_id: 32-character hex token or hyphenated identifier

    Returns:
        Lower-case hyphenated identifier

    Raises:
        PersonNotFoundError: If the identifier has neither form
    """
    candidate = (person_id or "").strip()

    if _BARE_HEX_ID_RE.match(candidate):
        candidate = "-".join(
            (candidate[:8], candidate[8:12], candidate[12:16], candidate[16:20], candidate[20:])
        )

    if not _HYPHENATED_ID_RE.match(candidate):
        raise PersonNotFoundError(f"Invalid person identifier: {person_id!r}")

    return candidate.lower()


def parse_schedule_blob(
    blob: str | None, label: str = "Calendar Feed JSON"
) -> list[dict[str, Any]]:
    """Decode a schedule JSON blob into its list of records.

    Accepts either a bare list or an object with an "events" list.

    Args:
        blob: Formula string value (None or blank means no data)
        label: Property name used in error messages

    Returns:
        List of records (empty when the blob is missing)

    Raises:
        MalformedUpstreamDataError: If the blob is not valid JSON or has the wrong shape
    """
    if blob is None or not blob.strip():
        return []

    try:
        data = json.loads(blob)
    except json.JSONDecodeError as e:
        raise MalformedUpstreamDataError(f"{label} is not valid JSON", e) from e

    if isinstance(data, dict):
        data = data.get("events", [])

    if not isinstance(data, list):
        raise MalformedUpstreamDataError(
            f"{label} must be a list or an object with an 'events' list, "
            f"got {type(data).__name__}"
        )

    return data


@dataclass
class PersonSchedule:
    """Raw schedule data read from a person page."""

    person_id: str
    person_name: str
    engagements: list[dict[str, Any]] = field(default_factory=list)
    hotels: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class FeedResult:
    """Outcome of one feed generation."""

    person_id: str
    person_name: str
    document: FeedDocument
    entries: list[CalendarEntry]

    @property
    def no_events(self) -> bool:
        return not self.entries


class CalendarFeedService:
    """Drives normalizer → flattener → assembler for one person per call."""

    def __init__(
        self,
        config: FeedConfig,
        api_client: NotionAPIClient | None = None,
    ) -> None:
        """Initialize feed service.

        Args:
            config: Feed configuration
            api_client: Notion client (created from config.notion if None)
        """
        self.config = config
        self.api_client = api_client or NotionAPIClient(config.notion, debug=config.debug)
        self.flattener = ScheduleFlattener()
        self.assembler = FeedAssembler(calendar_name_suffix=config.calendar_name_suffix)

    async def close(self) -> None:
        await self.api_client.close()

    async def load_schedule(self, person_id: str) -> PersonSchedule:
        """Fetch and decode a person's schedule.

        Raises:
            PersonNotFoundError: Unknown or malformed identifier
            MalformedUpstreamDataError: Schedule JSON present but unusable
            UpstreamRequestError: Notion request failed
        """
        canonical_id = canonicalize_person_id(person_id)
        page = await self.api_client.retrieve_page(canonical_id)

        if page.get("archived") or page.get("in_trash"):
            raise PersonNotFoundError(f"Person {canonical_id} has been archived")

        person_name = (formula_string(page, self.config.full_name_property) or "").strip()
        engagements = parse_schedule_blob(
            formula_string(page, self.config.feed_json_property),
            self.config.feed_json_property,
        )

        # A broken person-level hotels blob only loses the hotels, not the feed
        hotels: list[dict[str, Any]] = []
        try:
            hotels = parse_schedule_blob(
                formula_string(page, self.config.hotels_json_property),
                self.config.hotels_json_property,
            )
        except MalformedUpstreamDataError as e:
            logger.warning(f"Ignoring hotels for {canonical_id}: {e}")

        return PersonSchedule(
            person_id=canonical_id,
            person_name=person_name or UNKNOWN_PERSON_NAME,
            engagements=engagements,
            hotels=hotels,
        )

    async def generate_feed(self, person_id: str, fmt: FeedFormat) -> FeedResult:
        """Generate a person's feed in the requested format.

        An empty schedule is not an error: the result has no entries and
        no_events is True.
        """
        schedule = await self.load_schedule(person_id)

        entries = self.flattener.flatten(schedule.engagements, extra_hotels=schedule.hotels)
        document = self.assembler.assemble(
            entries,
            fmt,
            schedule.person_name,
            engagement_count=len(schedule.engagements),
        )

        logger.info(
            f"Generated {fmt.value} feed for {schedule.person_id} ({schedule.person_name}): "
            f"{len(schedule.engagements)} engagements, {len(entries)} entries"
            + (f", {document.skipped} skipped" if document.skipped else "")
        )

        return FeedResult(
            person_id=schedule.person_id,
            person_name=schedule.person_name,
            document=document,
            entries=entries,
        )

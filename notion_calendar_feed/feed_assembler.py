"""Assemble flattened calendar entries into a feed document.

Two output formats are supported:

- calendar: a single VCALENDAR with one VEVENT per entry, suitable for
  calendar subscriptions
- summary: a JSON-serializable breakdown of entry kinds plus the full entry
  list, for diagnostics
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from icalendar import Calendar as iCalendar
from icalendar import Event as iEvent

from .datetime_normalizer import parse_iso_instant
from .entries import CalendarEntry, EntryKind, EntryTime, Resolved

logger = logging.getLogger(__name__)

PRODID = "-//Notion Calendar Feed//EN"


class FeedFormat(str, Enum):
    """Output format of a feed document."""

    CALENDAR = "ics"
    SUMMARY = "json"


@dataclass
class FeedDocument:
    """Assembled feed ready to be returned to a client."""

    format: FeedFormat
    content: str | dict[str, Any]
    skipped: int = 0

    @property
    def media_type(self) -> str:
        if self.format is FeedFormat.CALENDAR:
            return "text/calendar; charset=utf-8"
        return "application/json"


def resolve_entry_time(value: EntryTime) -> datetime | None:
    """Return the UTC instant for an entry time, parsing raw text if needed."""
    if isinstance(value, Resolved):
        return value.instant
    return parse_iso_instant(value.raw)


class FeedAssembler:
    """Builds calendar or summary documents from calendar entries."""

    def __init__(self, calendar_name_suffix: str = "Downbeat Events") -> None:
        """Initialize feed assembler.

        Args:
            calendar_name_suffix: Appended to the person's name in X-WR-CALNAME
        """
        self.calendar_name_suffix = calendar_name_suffix

    def assemble(
        self,
        entries: list[CalendarEntry],
        fmt: FeedFormat,
        person_display_name: str,
        engagement_count: int | None = None,
        generated_at: datetime | None = None,
    ) -> FeedDocument:
        """Assemble entries into the requested format.

        Args:
            entries: Flattened calendar entries
            fmt: Output format
            person_display_name: Person's name for the calendar title
            engagement_count: Number of engagements in the source record
                (summary only; defaults to the number of distinct engagements)
            generated_at: DTSTAMP for calendar events (defaults to now)

        Returns:
            FeedDocument with either iCalendar text or a summary dict
        """
        if fmt is FeedFormat.CALENDAR:
            content, skipped = self.build_calendar(entries, person_display_name, generated_at)
            return FeedDocument(format=fmt, content=content, skipped=skipped)

        return FeedDocument(
            format=fmt,
            content=self.build_summary(entries, person_display_name, engagement_count),
        )

    def build_calendar(
        self,
        entries: list[CalendarEntry],
        person_display_name: str,
        generated_at: datetime | None = None,
    ) -> tuple[str, int]:
        """Generate a single VCALENDAR with one VEVENT per entry.

        Instants are written in UTC without a VTIMEZONE; subscribing clients
        display them in their own local zone.

        Returns:
            Tuple of (iCalendar text, number of skipped entries)
        """
        cal = iCalendar()
        cal.add("prodid", PRODID)
        cal.add("version", "2.0")
        cal.add("calscale", "GREGORIAN")
        cal.add("method", "PUBLISH")
        cal.add("x-wr-calname", f"{person_display_name} - {self.calendar_name_suffix}")
        cal.add("x-wr-caldesc", f"Calendar feed for {person_display_name}")

        dtstamp = generated_at or datetime.now(UTC)
        skipped = 0

        for entry in entries:
            start = resolve_entry_time(entry.start)
            end = resolve_entry_time(entry.end)
            if start is None or end is None:
                logger.warning(
                    f"Skipping {entry.kind.value} '{entry.title}': "
                    f"unresolvable time ({entry.start.to_json()!r} / {entry.end.to_json()!r})"
                )
                skipped += 1
                continue

            event = iEvent()
            event.add("uid", entry.uid)
            event.add("dtstamp", dtstamp)
            event.add("dtstart", start)
            event.add("dtend", end)
            event.add("summary", entry.title)
            if entry.description:
                event.add("description", entry.description)
            if entry.location:
                event.add("location", entry.location)
            if entry.url:
                event.add("url", entry.url)

            cal.add_component(event)

        ical_str: str = cal.to_ical().decode("utf-8")
        return ical_str, skipped

    def build_summary(
        self,
        entries: list[CalendarEntry],
        person_display_name: str,
        engagement_count: int | None = None,
    ) -> dict[str, Any]:
        """Build the JSON summary: counts per kind plus every entry."""

        def count(*kinds: EntryKind) -> int:
            return sum(1 for entry in entries if entry.kind in kinds)

        if engagement_count is None:
            engagement_count = len({entry.related_engagement for entry in entries})

        return {
            "personName": person_display_name,
            "totalMainEvents": engagement_count,
            "totalCalendarEvents": len(entries),
            "breakdown": {
                "mainEvents": count(EntryKind.MAIN_EVENT),
                "flights": count(EntryKind.FLIGHT_DEPARTURE, EntryKind.FLIGHT_RETURN),
                "rehearsals": count(EntryKind.REHEARSAL),
                "hotels": count(EntryKind.HOTEL),
                "groundTransport": count(EntryKind.GROUND_TRANSPORT, EntryKind.MEETUP),
            },
            "events": [entry.to_dict() for entry in entries],
        }

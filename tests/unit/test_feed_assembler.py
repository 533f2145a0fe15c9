"""Tests for assembling calendar entries into feed documents."""

from datetime import UTC, datetime

import pytest
from icalendar import Calendar

from notion_calendar_feed.entries import CalendarEntry, EntryKind, Resolved, Unresolved
from notion_calendar_feed.feed_assembler import FeedAssembler, FeedFormat, resolve_entry_time

GENERATED_AT = datetime(2025, 10, 1, 12, 0, tzinfo=UTC)


def make_entry(kind, title, start, end, uid, **kwargs):
    return CalendarEntry(
        kind=kind,
        title=title,
        start=start,
        end=end,
        description=kwargs.get("description", ""),
        location=kwargs.get("location", ""),
        related_engagement=kwargs.get("related_engagement", "Fall Gala"),
        uid=uid,
        url=kwargs.get("url"),
    )


@pytest.fixture
def entries():
    return [
        make_entry(
            EntryKind.MAIN_EVENT,
            "🎸 Fall Gala",
            Resolved(datetime(2025, 10, 19, 20, 15, tzinfo=UTC)),
            Resolved(datetime(2025, 10, 20, 4, 47, tzinfo=UTC)),
            "main@notion-calendar-feed",
            description="Black attire",
            location="Grand Hall",
            url="https://www.notion.so/fall-gala",
        ),
        make_entry(
            EntryKind.FLIGHT_DEPARTURE,
            "✈️ SFO to LAX",
            Resolved(datetime(2025, 10, 18, 15, 0, tzinfo=UTC)),
            Resolved(datetime(2025, 10, 18, 16, 30, tzinfo=UTC)),
            "flight@notion-calendar-feed",
        ),
        make_entry(
            EntryKind.HOTEL,
            "🏨 Harbor Inn",
            Unresolved("2025-10-18"),
            Unresolved("2025-10-20"),
            "hotel@notion-calendar-feed",
        ),
        make_entry(
            EntryKind.GROUND_TRANSPORT,
            "🚙 Pickup",
            Resolved(datetime(2025, 10, 20, 0, 0, tzinfo=UTC)),
            Resolved(datetime(2025, 10, 20, 0, 30, tzinfo=UTC)),
            "transport@notion-calendar-feed",
        ),
        make_entry(
            EntryKind.MEETUP,
            "📍 Meetup - Pickup",
            Resolved(datetime(2025, 10, 20, 1, 0, tzinfo=UTC)),
            Resolved(datetime(2025, 10, 20, 1, 30, tzinfo=UTC)),
            "meetup@notion-calendar-feed",
        ),
    ]


def test_resolve_entry_time():
    instant = datetime(2025, 10, 19, 20, 15, tzinfo=UTC)

    assert resolve_entry_time(Resolved(instant)) == instant
    assert resolve_entry_time(Unresolved("2025-10-18")) == datetime(2025, 10, 18, tzinfo=UTC)
    assert resolve_entry_time(Unresolved("TBD")) is None


def test_calendar_document(entries):
    document = FeedAssembler().assemble(
        entries, FeedFormat.CALENDAR, "Jane Doe", generated_at=GENERATED_AT
    )

    assert document.media_type == "text/calendar; charset=utf-8"
    assert document.skipped == 0

    cal = Calendar.from_ical(document.content)
    assert str(cal["X-WR-CALNAME"]) == "Jane Doe - Downbeat Events"
    assert str(cal["METHOD"]) == "PUBLISH"

    events = cal.walk("VEVENT")
    assert [str(event["UID"]) for event in events] == [entry.uid for entry in entries]

    main = events[0]
    assert str(main["SUMMARY"]) == "🎸 Fall Gala"
    assert main.decoded("DTSTART") == datetime(2025, 10, 19, 20, 15, tzinfo=UTC)
    assert main.decoded("DTEND") == datetime(2025, 10, 20, 4, 47, tzinfo=UTC)
    assert str(main["LOCATION"]) == "Grand Hall"
    assert str(main["DESCRIPTION"]) == "Black attire"
    assert str(main["URL"]) == "https://www.notion.so/fall-gala"

    assert "LOCATION" not in events[1]
    assert "URL" not in events[1]


def test_calendar_uses_utc_instants(entries):
    content, _ = FeedAssembler().build_calendar(entries, "Jane Doe", GENERATED_AT)

    assert "DTSTART:20251019T201500Z" in content
    assert "VTIMEZONE" not in content


def test_unresolvable_entries_are_skipped(entries):
    entries.append(
        make_entry(
            EntryKind.REHEARSAL,
            "🎤 Rehearsal",
            Unresolved("TBD"),
            Unresolved("TBD"),
            "rehearsal@notion-calendar-feed",
        )
    )

    document = FeedAssembler().assemble(
        entries, FeedFormat.CALENDAR, "Jane Doe", generated_at=GENERATED_AT
    )

    assert document.skipped == 1
    assert len(Calendar.from_ical(document.content).walk("VEVENT")) == len(entries) - 1


def test_empty_calendar_is_valid():
    document = FeedAssembler(calendar_name_suffix="Tour").assemble(
        [], FeedFormat.CALENDAR, "Jane Doe", generated_at=GENERATED_AT
    )

    cal = Calendar.from_ical(document.content)
    assert cal.walk("VEVENT") == []
    assert str(cal["X-WR-CALNAME"]) == "Jane Doe - Tour"


def test_summary_document(entries):
    document = FeedAssembler().assemble(entries, FeedFormat.SUMMARY, "Jane Doe")

    assert document.media_type == "application/json"
    summary = document.content
    assert summary["personName"] == "Jane Doe"
    assert summary["totalMainEvents"] == 1
    assert summary["totalCalendarEvents"] == 5
    assert summary["breakdown"] == {
        "mainEvents": 1,
        "flights": 1,
        "rehearsals": 0,
        "hotels": 1,
        "groundTransport": 2,
    }

    hotel = summary["events"][2]
    assert hotel["type"] == "hotel"
    assert hotel["start"] == "2025-10-18"
    assert hotel["mainEvent"] == "Fall Gala"
    assert summary["events"][0]["start"] == "2025-10-19T20:15:00Z"
    assert summary["events"][0]["url"] == "https://www.notion.so/fall-gala"
    assert "url" not in summary["events"][1]


def test_summary_engagement_count_override(entries):
    summary = FeedAssembler().build_summary(entries, "Jane Doe", engagement_count=3)

    assert summary["totalMainEvents"] == 3

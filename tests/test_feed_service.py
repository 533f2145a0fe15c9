"""Tests for per-person feed generation against a fake Notion API."""

import json

import httpx
import pytest

from conftest import PERSON_ID, person_page
from notion_calendar_feed.errors import (
    MalformedUpstreamDataError,
    PersonNotFoundError,
    UpstreamRequestError,
)
from notion_calendar_feed.feed_assembler import FeedFormat
from notion_calendar_feed.feed_service import canonicalize_person_id, parse_schedule_blob


def test_canonicalize_bare_hex_id():
    assert canonicalize_person_id("1F2E3D4C5B6A79881F2E3D4C5B6A7988") == PERSON_ID


def test_canonicalize_hyphenated_id():
    assert canonicalize_person_id(f"  {PERSON_ID.upper()} ") == PERSON_ID


@pytest.mark.parametrize("person_id", ["", "not-an-id", "1f2e3d4c", "g" * 32, PERSON_ID + "0"])
def test_canonicalize_rejects_malformed_ids(person_id):
    with pytest.raises(PersonNotFoundError):
        canonicalize_person_id(person_id)


def test_parse_schedule_blob():
    assert parse_schedule_blob(None) == []
    assert parse_schedule_blob("  ") == []
    assert parse_schedule_blob('[{"event_name": "Gig"}]') == [{"event_name": "Gig"}]
    assert parse_schedule_blob('{"events": [{"event_name": "Gig"}]}') == [{"event_name": "Gig"}]


@pytest.mark.parametrize("blob", ["{not valid json", '"just a string"', "42"])
def test_parse_schedule_blob_rejects_bad_data(blob):
    with pytest.raises(MalformedUpstreamDataError):
        parse_schedule_blob(blob)


@pytest.mark.asyncio
async def test_generate_summary_feed(service, fake_notion, schedule_json):
    fake_notion.pages[PERSON_ID] = person_page(feed_json=schedule_json)

    result = await service.generate_feed(PERSON_ID.replace("-", ""), FeedFormat.SUMMARY)

    assert result.person_id == PERSON_ID
    assert result.person_name == "Jane Doe"
    assert not result.no_events
    summary = result.document.content
    assert summary["totalMainEvents"] == 1
    assert summary["totalCalendarEvents"] == 2
    assert summary["breakdown"]["flights"] == 1

    request = fake_notion.requests[0]
    assert request.url.path == f"/v1/pages/{PERSON_ID}"
    assert request.headers["Authorization"] == "Bearer secret_test"
    assert request.headers["Notion-Version"] == "2022-06-28"


@pytest.mark.asyncio
async def test_generate_calendar_feed(service, fake_notion, schedule_json):
    fake_notion.pages[PERSON_ID] = person_page(feed_json=schedule_json)

    result = await service.generate_feed(PERSON_ID, FeedFormat.CALENDAR)

    assert result.document.content.startswith("BEGIN:VCALENDAR")
    assert result.document.content.count("BEGIN:VEVENT") == 2


@pytest.mark.asyncio
async def test_empty_schedule_is_not_an_error(service, fake_notion):
    fake_notion.pages[PERSON_ID] = person_page(feed_json="")

    result = await service.generate_feed(PERSON_ID, FeedFormat.SUMMARY)

    assert result.no_events
    assert result.document.content["totalCalendarEvents"] == 0


@pytest.mark.asyncio
async def test_missing_name_defaults_to_unknown(service, fake_notion, schedule_json):
    fake_notion.pages[PERSON_ID] = person_page(name="", feed_json=schedule_json)

    result = await service.generate_feed(PERSON_ID, FeedFormat.SUMMARY)

    assert result.person_name == "Unknown"


@pytest.mark.asyncio
async def test_malformed_schedule_json(service, fake_notion):
    fake_notion.pages[PERSON_ID] = person_page(feed_json="{not valid json")

    with pytest.raises(MalformedUpstreamDataError) as exc_info:
        await service.generate_feed(PERSON_ID, FeedFormat.SUMMARY)

    assert exc_info.value.reason == "malformed_upstream_data"
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_malformed_hotels_are_ignored(service, fake_notion, schedule_json):
    fake_notion.pages[PERSON_ID] = person_page(feed_json=schedule_json, hotels_json="{oops")

    result = await service.generate_feed(PERSON_ID, FeedFormat.SUMMARY)

    assert result.document.content["breakdown"]["hotels"] == 0
    assert result.document.content["totalCalendarEvents"] == 2


@pytest.mark.asyncio
async def test_person_level_hotels_are_merged(service, fake_notion, schedule_json):
    hotels = json.dumps(
        [{"hotel_name": "Harbor Inn", "dates_booked": "@October 18, 2025 → October 20, 2025"}]
    )
    fake_notion.pages[PERSON_ID] = person_page(feed_json=schedule_json, hotels_json=hotels)

    result = await service.generate_feed(PERSON_ID, FeedFormat.SUMMARY)

    assert result.document.content["breakdown"]["hotels"] == 1


@pytest.mark.asyncio
async def test_unknown_person(service):
    with pytest.raises(PersonNotFoundError):
        await service.generate_feed(PERSON_ID, FeedFormat.SUMMARY)


@pytest.mark.asyncio
async def test_archived_person(service, fake_notion, schedule_json):
    fake_notion.pages[PERSON_ID] = person_page(feed_json=schedule_json, archived=True)

    with pytest.raises(PersonNotFoundError):
        await service.generate_feed(PERSON_ID, FeedFormat.SUMMARY)


@pytest.mark.asyncio
async def test_malformed_id_never_reaches_notion(service, fake_notion):
    with pytest.raises(PersonNotFoundError):
        await service.generate_feed("../../etc/passwd", FeedFormat.SUMMARY)

    assert fake_notion.requests == []


@pytest.mark.asyncio
async def test_upstream_failure(service, fake_notion):
    fake_notion.pages[PERSON_ID] = httpx.Response(500, json={"code": "internal_server_error"})

    with pytest.raises(UpstreamRequestError) as exc_info:
        await service.generate_feed(PERSON_ID, FeedFormat.SUMMARY)

    assert exc_info.value.status_code == 502

"""Shared fixtures: a fake Notion API served through httpx.MockTransport."""

import json

import httpx
import pytest

from notion_calendar_feed.config import FeedConfig
from notion_calendar_feed.feed_service import CalendarFeedService
from notion_calendar_feed.notion_api_client import NotionAPIClient, NotionConfig

PERSON_ID = "1f2e3d4c-5b6a-7988-1f2e-3d4c5b6a7988"

ENGAGEMENT = {
    "event_name": "Fall Gala",
    "band": "The Downbeats",
    "event_date": "@October 19, 2025 1:15 PM → 9:47 PM",
    "venue": "Grand Hall",
    "flights": [
        {
            "departure_name": "SFO to LAX",
            "departure_time": "@October 18, 2025 8:00 AM → 9:30 AM",
        }
    ],
}


def formula(value):
    return {"type": "formula", "formula": {"type": "string", "string": value}}


def person_page(name="Jane Doe", feed_json=None, hotels_json=None, **extra):
    """Build a Notion page object carrying the schedule formula properties."""
    properties = {"Full Name": formula(name)}
    if feed_json is not None:
        properties["Calendar Feed JSON"] = formula(feed_json)
    if hotels_json is not None:
        properties["Hotels JSON"] = formula(hotels_json)
    page = {"object": "page", "id": PERSON_ID, "archived": False, "properties": properties}
    page.update(extra)
    return page


class FakeNotion:
    """Serves person pages by id and records every request."""

    def __init__(self):
        self.pages = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        page_id = request.url.path.rsplit("/", 1)[-1]
        page = self.pages.get(page_id)
        if page is None:
            return httpx.Response(
                404,
                json={"object": "error", "status": 404, "code": "object_not_found"},
            )
        if isinstance(page, httpx.Response):
            return page
        return httpx.Response(200, json=page)


@pytest.fixture
def fake_notion():
    return FakeNotion()


@pytest.fixture
def config():
    return FeedConfig(notion=NotionConfig(api_key="secret_test"))


@pytest.fixture
def service(config, fake_notion):
    api_client = NotionAPIClient(config.notion, transport=httpx.MockTransport(fake_notion.handler))
    return CalendarFeedService(config, api_client=api_client)


@pytest.fixture
def schedule_json():
    return json.dumps([ENGAGEMENT])

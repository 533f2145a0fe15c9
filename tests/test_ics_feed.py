"""Tests for the calendar feed HTTP endpoint."""

import pytest
from icalendar import Calendar
from starlette.testclient import TestClient

from conftest import PERSON_ID, person_page
from notion_calendar_feed.server import create_app


@pytest.fixture
def client(config, service):
    with TestClient(create_app(config, service=service)) as client:
        yield client


def test_health(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Calendar Feed Server Running"
    assert body["endpoints"]["ics"] == "/calendar/{personId}?format=ics"


def test_ics_feed(client, fake_notion, schedule_json):
    fake_notion.pages[PERSON_ID] = person_page(feed_json=schedule_json)

    response = client.get(f"/calendar/{PERSON_ID}?format=ics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/calendar")
    assert response.headers["content-disposition"] == 'attachment; filename="calendar.ics"'
    assert response.headers["cache-control"] == "private, max-age=300"

    cal = Calendar.from_ical(response.text)
    assert str(cal["X-WR-CALNAME"]) == "Jane Doe - Downbeat Events"
    assert len(cal.walk("VEVENT")) == 2


def test_accept_header_selects_calendar(client, fake_notion, schedule_json):
    fake_notion.pages[PERSON_ID] = person_page(feed_json=schedule_json)

    response = client.get(f"/calendar/{PERSON_ID}", headers={"Accept": "text/calendar"})

    assert response.headers["content-type"].startswith("text/calendar")


def test_json_is_the_default(client, fake_notion, schedule_json):
    fake_notion.pages[PERSON_ID] = person_page(feed_json=schedule_json)

    response = client.get(f"/calendar/{PERSON_ID.replace('-', '')}")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["personName"] == "Jane Doe"
    assert body["breakdown"]["mainEvents"] == 1
    assert body["events"][0]["start"] == "2025-10-19T20:15:00Z"


def test_empty_schedule(client, fake_notion):
    fake_notion.pages[PERSON_ID] = person_page(feed_json=None)

    json_response = client.get(f"/calendar/{PERSON_ID}?format=json")
    ics_response = client.get(f"/calendar/{PERSON_ID}?format=ics")

    assert json_response.status_code == 200
    assert json_response.json()["status"] == "no_events"
    assert ics_response.status_code == 200
    assert "BEGIN:VEVENT" not in ics_response.text


def test_unknown_person(client):
    response = client.get(f"/calendar/{PERSON_ID}")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_malformed_person_id(client, fake_notion):
    response = client.get("/calendar/not-a-person?format=ics")

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"
    assert fake_notion.requests == []


def test_malformed_upstream_data(client, fake_notion):
    fake_notion.pages[PERSON_ID] = person_page(feed_json="{not valid json")

    response = client.get(f"/calendar/{PERSON_ID}")

    assert response.status_code == 502
    assert response.json()["error"] == "malformed_upstream_data"


class ExplodingService:
    async def generate_feed(self, person_id, fmt):
        raise RuntimeError("boom")

    async def close(self):
        pass


def test_unexpected_error(config):
    with TestClient(create_app(config, service=ExplodingService())) as client:
        response = client.get(f"/calendar/{PERSON_ID}")

    assert response.status_code == 500
    assert response.json()["error"] == "internal_error"

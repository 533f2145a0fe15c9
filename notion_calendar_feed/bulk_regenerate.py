"""Bulk regeneration of every person's calendar feed.

People are processed in fixed-size groups: all members of a group are
requested concurrently, then the regenerator pauses before the next group so
the Notion integration stays under its rate limit.

Person ids come from the calendar-data database, where each row links to one
person through the Personnel relation.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from .config import FeedConfig
from .notion_api_client import NotionAPIClient, first_relation_id

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_NO_EVENTS = "no_events"
STATUS_ERROR = "error"


@dataclass
class RegenerationResult:
    """Outcome of regenerating one person's feed."""

    person_id: str
    status: str
    elapsed: float
    person_name: str | None = None
    event_count: int = 0
    reason: str | None = None
    message: str | None = None


@dataclass
class GroupReport:
    """Results of one concurrently processed group."""

    number: int
    results: list[RegenerationResult]
    elapsed: float

    def count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)


@dataclass
class BatchReport:
    """Results of a full bulk regeneration run."""

    groups: list[GroupReport] = field(default_factory=list)
    fetch_elapsed: float = 0.0
    total_elapsed: float = 0.0

    @property
    def results(self) -> list[RegenerationResult]:
        return [r for group in self.groups for r in group.results]

    def count(self, status: str) -> int:
        return sum(group.count(status) for group in self.groups)

    @property
    def errors(self) -> list[RegenerationResult]:
        return [r for r in self.results if r.status == STATUS_ERROR]


def chunked(items: list[str], size: int) -> list[list[str]]:
    """Split items into consecutive groups of at most size elements."""
    if size < 1:
        raise ValueError("group size must be at least 1")
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchRegenerator:
    """Regenerates feeds for many people through the feed endpoint."""

    def __init__(
        self,
        config: FeedConfig,
        api_client: NotionAPIClient | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize batch regenerator.

        Args:
            config: Feed configuration (batch size, pause, feed base URL)
            api_client: Notion client used to list person ids
            http_client: Client used to call the feed endpoint
        """
        self.config = config
        self.api_client = api_client or NotionAPIClient(config.notion, debug=config.debug)
        self.http_client = http_client or httpx.AsyncClient(
            base_url=config.feed_base_url,
            timeout=config.notion.timeout * 4,
        )

    async def close(self) -> None:
        await self.api_client.close()
        await self.http_client.aclose()

    async def __aenter__(self) -> BatchRegenerator:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def fetch_person_ids(self) -> list[str]:
        """List person ids linked from the calendar-data database.

        Only the Personnel relation is requested so Notion skips computing
        the formula properties of every row.
        """
        rows = await self.api_client.query_all_rows(
            self.config.calendar_data_database_id,
            filter_properties=[self.config.personnel_relation_property],
        )

        person_ids: list[str] = []
        seen: set[str] = set()
        for row in rows:
            person_id = first_relation_id(row, self.config.personnel_relation_property)
            if person_id and person_id not in seen:
                seen.add(person_id)
                person_ids.append(person_id)

        logger.info(f"Found {len(person_ids)} people in {len(rows)} calendar data rows")
        return person_ids

    async def regenerate_person(self, person_id: str) -> RegenerationResult:
        """Request one person's feed and classify the outcome."""
        started = time.monotonic()
        try:
            response = await self.http_client.get(
                f"/calendar/{person_id}", params={"format": "json"}
            )
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            return RegenerationResult(
                person_id=person_id,
                status=STATUS_ERROR,
                elapsed=time.monotonic() - started,
                reason="request_failed",
                message=str(e),
            )

        elapsed = time.monotonic() - started

        if response.status_code != 200 or not isinstance(body, dict):
            error = body if isinstance(body, dict) else {}
            return RegenerationResult(
                person_id=person_id,
                status=STATUS_ERROR,
                elapsed=elapsed,
                reason=error.get("error", f"http_{response.status_code}"),
                message=error.get("message"),
            )

        status = STATUS_NO_EVENTS if body.get("status") == STATUS_NO_EVENTS else STATUS_SUCCESS
        return RegenerationResult(
            person_id=person_id,
            status=status,
            elapsed=elapsed,
            person_name=body.get("personName"),
            event_count=int(body.get("totalCalendarEvents", 0)),
            reason=STATUS_NO_EVENTS if status == STATUS_NO_EVENTS else None,
        )

    async def process_group(self, person_ids: list[str], number: int, total: int) -> GroupReport:
        """Regenerate one group concurrently."""
        logger.info(f"Group {number}/{total}: processing {len(person_ids)} people in parallel")
        started = time.monotonic()

        results = await asyncio.gather(*(self.regenerate_person(pid) for pid in person_ids))

        report = GroupReport(
            number=number, results=list(results), elapsed=time.monotonic() - started
        )
        logger.info(
            f"Group {number}/{total} complete in {report.elapsed:.1f}s: "
            f"{report.count(STATUS_SUCCESS)} success | "
            f"{report.count(STATUS_NO_EVENTS)} no events | "
            f"{report.count(STATUS_ERROR)} errors"
        )
        return report

    async def run(self, person_ids: list[str] | None = None) -> BatchReport:
        """Regenerate feeds for the given people (or everyone in the database).

        Args:
            person_ids: Explicit ids; fetched from the calendar-data database if None

        Returns:
            BatchReport with per-group results
        """
        report = BatchReport()
        started = time.monotonic()

        if person_ids is None:
            person_ids = await self.fetch_person_ids()
            report.fetch_elapsed = time.monotonic() - started

        groups = chunked(person_ids, self.config.batch_size)
        for index, group in enumerate(groups, start=1):
            report.groups.append(await self.process_group(group, index, len(groups)))

            if index < len(groups):
                pause = self.config.batch_pause_seconds
                logger.info(f"Pausing {pause:g}s before group {index + 1}")
                await asyncio.sleep(pause)

        report.total_elapsed = time.monotonic() - started
        logger.info(
            f"Regenerated {len(person_ids)} people in {report.total_elapsed:.1f}s: "
            f"{report.count(STATUS_SUCCESS)} success, "
            f"{report.count(STATUS_NO_EVENTS)} no events, "
            f"{report.count(STATUS_ERROR)} errors"
        )
        return report

"""Calendar entry types produced by the schedule flattener."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Union


class EntryKind(str, Enum):
    """Kind of calendar entry derived from an engagement record."""

    MAIN_EVENT = "main_event"
    FLIGHT_DEPARTURE = "flight_departure"
    FLIGHT_RETURN = "flight_return"
    REHEARSAL = "rehearsal"
    HOTEL = "hotel"
    GROUND_TRANSPORT = "ground_transport"
    MEETUP = "meetup"


@dataclass(frozen=True)
class TimeRange:
    """Start/end pair of absolute UTC instants."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class Resolved:
    """An entry time that was normalized to an absolute instant."""

    instant: datetime

    def to_json(self) -> str:
        return self.instant.strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class Unresolved:
    """An entry time kept as the raw upstream text."""

    raw: str

    def to_json(self) -> str:
        return self.raw


EntryTime = Union[Resolved, Unresolved]


@dataclass(frozen=True)
class CalendarEntry:
    """One flattened calendar entry."""

    kind: EntryKind
    title: str
    start: EntryTime
    end: EntryTime
    description: str
    location: str
    related_engagement: str
    uid: str
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the JSON summary feed."""
        data: dict[str, Any] = {
            "type": self.kind.value,
            "title": self.title,
            "start": self.start.to_json(),
            "end": self.end.to_json(),
            "description": self.description,
            "location": self.location,
            "mainEvent": self.related_engagement,
            "uid": self.uid,
        }
        if self.url:
            data["url"] = self.url
        return data

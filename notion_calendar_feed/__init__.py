"""Subscribable calendar feeds generated from Notion personnel schedules."""

from .config import FeedConfig
from .datetime_normalizer import normalize
from .entries import CalendarEntry, EntryKind, Resolved, TimeRange, Unresolved
from .errors import (
    FeedError,
    MalformedUpstreamDataError,
    PersonNotFoundError,
    UpstreamRequestError,
)
from .event_flattener import ScheduleFlattener
from .feed_assembler import FeedAssembler, FeedDocument, FeedFormat
from .feed_service import CalendarFeedService, canonicalize_person_id
from .notion_api_client import NotionAPIClient, NotionConfig
from .server import create_app

__version__ = "0.1.0"

__all__ = [
    "CalendarEntry",
    "CalendarFeedService",
    "EntryKind",
    "FeedAssembler",
    "FeedConfig",
    "FeedDocument",
    "FeedError",
    "FeedFormat",
    "MalformedUpstreamDataError",
    "NotionAPIClient",
    "NotionConfig",
    "PersonNotFoundError",
    "Resolved",
    "ScheduleFlattener",
    "TimeRange",
    "Unresolved",
    "UpstreamRequestError",
    "canonicalize_person_id",
    "create_app",
    "normalize",
]

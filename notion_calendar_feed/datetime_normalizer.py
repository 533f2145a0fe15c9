"""Normalization of schedule date/time text into absolute instants.

The workspace database stores times as text in several shapes:

- unified range notation: "@October 19, 2025 1:15 PM (PDT) → 9:47 PM" or,
  for multi-day ranges, "@November 8, 2025 10:00 PM → November 9, 2025 1:00 AM"
- date-only ranges used for hotel bookings: "@October 19, 2025 → October 21, 2025"
- a single unified date: "@October 19, 2025 6:00 PM"
- plain ISO-8601 timestamps from date properties: "2025-10-19T13:00:00.000-07:00"

Wall-clock values are local to the US Pacific region. Instead of a timezone
database, a fixed two-value offset is chosen by calendar date (March 9 through
November 2 is UTC-7, everything else UTC-8).

Quirk: when a unified range starts at 5 PM or later, both instants are moved
back 24 hours so the event stays on the stated local day in calendar clients
that display the UTC value. Tests pin this threshold.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta

from dateutil import parser as date_parser

from .entries import TimeRange

logger = logging.getLogger(__name__)

SUMMER_OFFSET_HOURS = 7  # PDT, UTC-7
WINTER_OFFSET_HOURS = 8  # PST, UTC-8
ROLLOVER_HOUR = 17

RANGE_ARROW = "→"

_UNIFIED_RANGE_RE = re.compile(
    r"@(.+?)\s+(\d{1,2}(?::\d{2})?\s*(?:AM|PM))(?:\s+\([^)]+\))?\s+→\s+(.+)",
    re.IGNORECASE,
)
_END_WITH_DATE_RE = re.compile(r"(.+?)\s+(\d{1,2}(?::\d{2})?\s*(?:AM|PM))", re.IGNORECASE)
_DATE_ONLY_RANGE_RE = re.compile(r"@(.+?)\s*→\s*(.+)")
_TIME_OF_DAY_RE = re.compile(r"\d{1,2}(?::\d{2})?\s*(?:AM|PM)\b|\d{1,2}:\d{2}", re.IGNORECASE)
_TRAILING_NOTE_RE = re.compile(r"\s*\([^)]*\)\s*$")


def pacific_offset_hours(month: int, day: int) -> int:
    """Return the hours to add to a Pacific wall-clock time to reach UTC.

    Args:
        month: Calendar month (1-12)
        day: Day of month

    Returns:
        7 during the approximated daylight-saving period, otherwise 8
    """
    if 3 < month < 11:
        return SUMMER_OFFSET_HOURS
    if month == 3 and day >= 9:
        return SUMMER_OFFSET_HOURS
    if month == 11 and day <= 2:
        return SUMMER_OFFSET_HOURS
    return WINTER_OFFSET_HOURS


def to_local_wall_clock(instant: datetime) -> datetime:
    """Convert a UTC instant back to a naive Pacific wall-clock datetime."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    instant = instant.astimezone(UTC)
    approx_local = instant - timedelta(hours=WINTER_OFFSET_HOURS)
    offset = pacific_offset_hours(approx_local.month, approx_local.day)
    return (instant - timedelta(hours=offset)).replace(tzinfo=None)


def format_display_time(instant: datetime) -> str:
    """Format an instant as Pacific wall-clock text, e.g. "Sat, Apr 12, 2025, 6:00 PM"."""
    local = to_local_wall_clock(instant)
    hour = local.hour % 12 or 12
    return f"{local:%a, %b} {local.day}, {local.year}, {hour}:{local:%M %p}"


def parse_iso_instant(text: str) -> datetime | None:
    """Parse an ISO-8601 timestamp into a UTC instant.

    Naive timestamps are taken as UTC. Returns None if the text is not ISO-8601.
    """
    try:
        parsed = date_parser.isoparse(text.strip())
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _clean(text: str) -> str:
    return text.replace("'", "").strip()


def _parse_wall_clock(text: str, default: datetime | None = None) -> datetime:
    """Parse free-form date/time text into a naive wall-clock datetime.

    Raises:
        ValueError: If dateutil cannot make sense of the text
        OverflowError: If a component is out of range
    """
    parsed = date_parser.parse(text, default=default)
    return parsed.replace(tzinfo=None)


def _wall_clock_to_utc(wall: datetime, offset_hours: int) -> datetime:
    return datetime(
        wall.year, wall.month, wall.day, wall.hour, wall.minute, tzinfo=UTC
    ) + timedelta(hours=offset_hours)


def _parse_unified_range(text: str) -> TimeRange | None:
    """Parse "@<date> <time> [(note)] → [<date>] <time>"."""
    match = _UNIFIED_RANGE_RE.match(text)
    if not match:
        return None

    date_str = match.group(1).strip()
    start_time_str = match.group(2).strip()
    end_part = _TRAILING_NOTE_RE.sub("", match.group(3).strip())

    # The end carries its own date only for multi-day ranges ("November 9, 2025 1:00 AM")
    end_match = _END_WITH_DATE_RE.match(end_part)
    if end_match and "," in end_match.group(1):
        end_date_str = end_match.group(1).strip()
        end_time_str = end_match.group(2).strip()
    else:
        end_date_str = date_str
        end_time_str = end_part

    try:
        start_wall = _parse_wall_clock(f"{date_str} {start_time_str}")
        end_wall = _parse_wall_clock(f"{end_date_str} {end_time_str}")

        # One offset for both ends, chosen by the start date
        offset = pacific_offset_hours(start_wall.month, start_wall.day)
        start = _wall_clock_to_utc(start_wall, offset)
        end = _wall_clock_to_utc(end_wall, offset)

        if start_wall.hour >= ROLLOVER_HOUR:
            start -= timedelta(hours=24)
            end -= timedelta(hours=24)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Unified range not parseable: {text!r} ({e})")
        return None

    return TimeRange(start=start, end=end)


def _parse_date_only_range(text: str) -> TimeRange | None:
    """Parse "@<date> → <date>" into local midnights."""
    match = _DATE_ONLY_RANGE_RE.match(text)
    if not match:
        return None
    if any(_TIME_OF_DAY_RE.search(side) for side in match.groups()):
        # Timed ranges belong to the unified notation
        return None

    try:
        start_wall = _parse_wall_clock(match.group(1).strip())
        end_wall = _parse_wall_clock(
            _TRAILING_NOTE_RE.sub("", match.group(2).strip()),
            default=start_wall.replace(hour=0, minute=0, second=0, microsecond=0),
        )
        offset = pacific_offset_hours(start_wall.month, start_wall.day)
        start = _wall_clock_to_utc(start_wall, offset)
        end = _wall_clock_to_utc(end_wall, offset)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Date range not parseable: {text!r} ({e})")
        return None

    return TimeRange(start=start, end=end)


def _parse_single(text: str, default: datetime | None) -> TimeRange | None:
    """Parse "@<date>[ <time>]" into a zero-length range."""
    try:
        wall = _parse_wall_clock(_TRAILING_NOTE_RE.sub("", text[1:].strip()), default=default)
        instant = _wall_clock_to_utc(wall, pacific_offset_hours(wall.month, wall.day))
    except (ValueError, OverflowError) as e:
        logger.debug(f"Single date not parseable: {text!r} ({e})")
        return None

    return TimeRange(start=instant, end=instant)


def normalize(text: str | None, default: datetime | None = None) -> TimeRange | None:
    """Normalize a schedule date/time expression into UTC instants.

    Never raises: None signals that every strategy failed and the caller
    should treat the field as absent.

    Args:
        text: Raw date/time text from the schedule record
        default: Wall-clock datetime supplying missing components (e.g. the
            date for a bare "@6:00 PM"); dateutil uses today when omitted

    Returns:
        TimeRange with UTC start/end, or None

    Example:
        >>> normalize("@October 19, 2025 1:15 PM → 9:47 PM")
        TimeRange(start=datetime(2025, 10, 19, 20, 15, tzinfo=UTC),
                  end=datetime(2025, 10, 20, 4, 47, tzinfo=UTC))
    """
    if not text or not isinstance(text, str):
        return None

    cleaned = _clean(text)
    if not cleaned:
        return None

    if cleaned.startswith("@"):
        result = _parse_unified_range(cleaned)
        if result is None and RANGE_ARROW in cleaned:
            result = _parse_date_only_range(cleaned)
        if result is None and RANGE_ARROW not in cleaned:
            result = _parse_single(cleaned, default)
        if result is not None:
            return result

    instant = parse_iso_instant(cleaned)
    if instant is not None:
        return TimeRange(start=instant, end=instant)

    logger.debug(f"No date/time strategy matched: {text!r}")
    return None

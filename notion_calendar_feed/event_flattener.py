"""Flatten nested per-person schedule records into calendar entries.

A schedule record is a list of engagements (performances). Each engagement
may nest flights, rehearsals, hotel stays and ground transport legs; every one
of those becomes its own calendar entry. Output order follows engagement
order, then a fixed sub-type order within each engagement:

    main event, flights, rehearsals, hotels, ground transport, meetups

Entries whose dates cannot be resolved are skipped (or kept with the raw text
where a fallback exists) so one bad field never drops the whole feed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from hashlib import md5
from typing import Any

from .datetime_normalizer import (
    format_display_time,
    normalize,
    parse_iso_instant,
    to_local_wall_clock,
)
from .entries import CalendarEntry, EntryKind, EntryTime, Resolved, TimeRange, Unresolved
from .transport_notes import parse_transport_notes, render_transport_description

logger = logging.getLogger(__name__)

TRANSPORT_DURATION = timedelta(minutes=30)
MEETUP_DURATION = timedelta(minutes=30)

UID_DOMAIN = "notion-calendar-feed"


def _text(value: Any) -> str:
    """Return value as stripped text ("" for None and non-strings)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value)


def _records(value: Any) -> list[dict[str, Any]]:
    """Return only the dict items of a nested list field."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _display_time(value: str) -> str | None:
    parsed = normalize(f"@{value}")
    if parsed is None:
        return None
    try:
        return format_display_time(parsed.start)
    except OverflowError:
        return None


class _EngagementBuilder:
    """Collects entries for one engagement and assigns their stable uids."""

    def __init__(self, engagement_name: str, engagement_index: int) -> None:
        self.engagement_name = engagement_name
        self.engagement_index = engagement_index
        self.entries: list[CalendarEntry] = []
        self._counts: dict[EntryKind, int] = {}

    def _uid(self, kind: EntryKind) -> str:
        ordinal = self._counts.get(kind, 0)
        self._counts[kind] = ordinal + 1
        seed = f"{self.engagement_index}|{self.engagement_name}|{kind.value}|{ordinal}"
        return f"{md5(seed.encode('utf-8')).hexdigest()}@{UID_DOMAIN}"

    def add(
        self,
        kind: EntryKind,
        title: str,
        start: EntryTime,
        end: EntryTime,
        description: str,
        location: str,
        url: str | None = None,
    ) -> None:
        if (
            isinstance(start, Resolved)
            and isinstance(end, Resolved)
            and end.instant < start.instant
        ):
            logger.warning(
                f"Inverted time range for {kind.value} '{title}' "
                f"({start.to_json()} > {end.to_json()}); keeping as-is"
            )

        self.entries.append(
            CalendarEntry(
                kind=kind,
                title=title,
                start=start,
                end=end,
                description=description,
                location=location,
                related_engagement=self.engagement_name,
                uid=self._uid(kind),
                url=url or None,
            )
        )


class ScheduleFlattener:
    """Expands engagement records into an ordered list of CalendarEntry values."""

    def flatten(
        self,
        record: list[dict[str, Any]],
        extra_hotels: list[dict[str, Any]] | None = None,
    ) -> list[CalendarEntry]:
        """Flatten a schedule record.

        Args:
            record: Engagement records in display order
            extra_hotels: Person-level hotel stays appended to every
                engagement's own hotels

        Returns:
            Ordered calendar entries
        """
        entries: list[CalendarEntry] = []

        for index, engagement in enumerate(_records(record)):
            builder = _EngagementBuilder(_text(engagement.get("event_name")), index)

            self._add_main_event(builder, engagement)
            self._add_flights(builder, engagement)
            self._add_rehearsals(builder, engagement)
            self._add_hotels(builder, _records(engagement.get("hotels")) + _records(extra_hotels))
            meetups = self._add_ground_transport(builder, engagement)
            for meetup in meetups:
                builder.add(**meetup)

            entries.extend(builder.entries)

        return entries

    @staticmethod
    def _band_suffix(engagement: dict[str, Any]) -> str:
        band = _text(engagement.get("band"))
        return f" ({band})" if band else ""

    def _add_main_event(self, builder: _EngagementBuilder, engagement: dict[str, Any]) -> None:
        name = _text(engagement.get("event_name"))
        date_text = _text(engagement.get("event_date"))
        if not name or not date_text:
            return

        times = normalize(date_text)
        if times is None:
            logger.warning(f"Skipping main event '{name}': unparseable date {date_text!r}")
            return

        payroll_info = ""
        payroll_rows = _records(engagement.get("payroll"))
        for payroll in payroll_rows:
            payroll_info += f"Position: {_text(payroll.get('position')) or 'N/A'}\n"
            if _text(payroll.get("assignment")):
                payroll_info += f"Assignment: {_text(payroll.get('assignment'))}\n"
            if payroll.get("pay_total") and _text(payroll.get("pay_total")):
                payroll_info += f"Pay: ${_text(payroll.get('pay_total'))}\n"
        if payroll_rows:
            payroll_info += "\n"

        builder.add(
            kind=EntryKind.MAIN_EVENT,
            title=f"🎸 {name}{self._band_suffix(engagement)}",
            start=Resolved(times.start),
            end=Resolved(times.end),
            description=payroll_info + _text(engagement.get("general_info")),
            location=_text(engagement.get("venue_address")) or _text(engagement.get("venue")),
            url=_text(engagement.get("notion_url")),
        )

    def _add_flights(self, builder: _EngagementBuilder, engagement: dict[str, Any]) -> None:
        for flight in _records(engagement.get("flights")):
            for side, kind in (
                ("departure", EntryKind.FLIGHT_DEPARTURE),
                ("return", EntryKind.FLIGHT_RETURN),
            ):
                name = _text(flight.get(f"{side}_name"))
                time_text = _text(flight.get(f"{side}_time"))
                if not name or not time_text:
                    continue

                times = normalize(time_text)
                start: EntryTime
                end: EntryTime
                if times is not None:
                    start, end = Resolved(times.start), Resolved(times.end)
                else:
                    # Older rows store separate departure/arrival strings
                    start = Unresolved(time_text)
                    end = Unresolved(_text(flight.get(f"{side}_arrival_time")) or time_text)

                builder.add(
                    kind=kind,
                    title=f"✈️ {name}",
                    start=start,
                    end=end,
                    description=(
                        f"Confirmation: {_text(flight.get('confirmation')) or 'N/A'}\n"
                        f"Airline: {_text(flight.get(f'{side}_airline')) or 'N/A'}\n"
                        f"Flight: {_text(flight.get(f'{side}_flightnumber')) or 'N/A'}"
                    ),
                    location=_text(flight.get(f"{side}_from")) or "Airport",
                )

    def _add_rehearsals(self, builder: _EngagementBuilder, engagement: dict[str, Any]) -> None:
        name = _text(engagement.get("event_name"))

        for rehearsal in _records(engagement.get("rehearsals")):
            time_text = _text(rehearsal.get("rehearsal_time"))
            if not time_text:
                continue

            times = normalize(time_text)
            start: EntryTime
            end: EntryTime
            if times is not None:
                start, end = Resolved(times.start), Resolved(times.end)
            else:
                start = end = Unresolved(time_text)

            venue = _text(rehearsal.get("rehearsal_location"))
            address = _text(rehearsal.get("rehearsal_address"))
            if venue and address:
                location = f"{venue}, {address}"
            else:
                location = venue or address or "TBD"

            description = f"Rehearsal for {name}"
            band_personnel = _text(rehearsal.get("rehearsal_band"))
            if band_personnel:
                description += f"\n\nBand Personnel:\n{band_personnel}"

            builder.add(
                kind=EntryKind.REHEARSAL,
                title=f"🎤 Rehearsal - {name}{self._band_suffix(engagement)}",
                start=start,
                end=end,
                description=description,
                location=location,
            )

    def _add_hotels(self, builder: _EngagementBuilder, hotels: list[dict[str, Any]]) -> None:
        for hotel in hotels:
            start: EntryTime
            end: EntryTime
            dates_booked = _text(hotel.get("dates_booked"))
            check_in = _text(hotel.get("check_in"))
            check_out = _text(hotel.get("check_out"))

            if dates_booked:
                times = normalize(dates_booked)
                if times is None:
                    logger.warning(f"Skipping hotel: unparseable dates booked {dates_booked!r}")
                    continue
                start, end = Resolved(times.start), Resolved(times.end)
            elif check_in and check_out:
                # Check-in/out are kept verbatim as local dates
                start, end = Unresolved(check_in), Unresolved(check_out)
            else:
                continue

            hotel_name = _text(hotel.get("hotel_name"))
            builder.add(
                kind=EntryKind.HOTEL,
                title=f"🏨 {hotel_name or _text(hotel.get('title')) or 'Hotel'}",
                start=start,
                end=end,
                description=(
                    "Hotel Stay\n"
                    f"Confirmation: {_text(hotel.get('confirmation')) or 'N/A'}\n"
                    f"Phone: {_text(hotel.get('hotel_phone')) or 'N/A'}\n\n"
                    f"Names on Reservation: {_text(hotel.get('names_on_reservation')) or 'N/A'}\n"
                    f"Booked Under: {_text(hotel.get('booked_under')) or 'N/A'}"
                ),
                location=_text(hotel.get("hotel_address")) or hotel_name or "Hotel",
                url=_text(hotel.get("hotel_google_maps")) or _text(hotel.get("hotel_apple_maps")),
            )

    def _transport_start(self, start_text: str) -> datetime | None:
        times = normalize(start_text)
        if times is not None:
            return times.start
        return parse_iso_instant(start_text)

    def _add_ground_transport(
        self, builder: _EngagementBuilder, engagement: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Add transport entries and return the meetup entries to add after them."""
        meetups: list[dict[str, Any]] = []

        for transport in _records(engagement.get("ground_transport")):
            start_text = _text(transport.get("start"))
            end_text = _text(transport.get("end"))
            if not start_text or not end_text:
                continue

            start = self._transport_start(start_text)
            if start is None:
                logger.warning(f"Skipping ground transport: unparseable start {start_text!r}")
                continue
            try:
                end = start + TRANSPORT_DURATION
                local_day = to_local_wall_clock(start).replace(
                    hour=0, minute=0, second=0, microsecond=0
                )
            except OverflowError:
                logger.warning(f"Skipping ground transport: start out of range {start_text!r}")
                continue

            title = _text(transport.get("title")) or "Ground Transport"
            title = title.replace("PICKUP:", "Pickup:").replace("DROPOFF:", "Dropoff:")

            raw_description = _text(transport.get("description"))
            notes = parse_transport_notes(raw_description)
            if raw_description:
                description = render_transport_description(notes, _display_time)
            else:
                description = "Ground transportation details"

            builder.add(
                kind=EntryKind.GROUND_TRANSPORT,
                title=f"🚙 {title}",
                start=Resolved(start),
                end=Resolved(end),
                description=description,
                location=_text(transport.get("location")),
            )

            if notes.meetup is None:
                continue

            meetup_times: TimeRange | None = normalize(
                f"@{notes.meetup.time_text}", default=local_day
            )
            try:
                meetup_end = meetup_times.start + MEETUP_DURATION if meetup_times else None
            except OverflowError:
                meetup_end = None
            if meetup_times is None or meetup_end is None:
                logger.warning(
                    f"Skipping meetup for '{title}': unparseable time {notes.meetup.time_text!r}"
                )
                continue

            meetup_description = f"Meetup for {title}\nMeetup Location: {notes.meetup.location}"
            if notes.meetup.address:
                meetup_description += f"\n{notes.meetup.address}"

            meetups.append(
                {
                    "kind": EntryKind.MEETUP,
                    "title": f"📍 Meetup - {title}",
                    "start": Resolved(meetup_times.start),
                    "end": Resolved(meetup_end),
                    "description": meetup_description,
                    "location": notes.meetup.display_location,
                }
            )

        return meetups

"""Label-grammar parser for ground transport notes.

Ground transport rows carry their details in one free-text field:

    Driver: Sam Lee
    Passenger: Alex Kim, Jo Park
    Driver Info:
    Phone: 555-0100
    Pickup: 10/19/2025 6:00 PM
    Passenger Info:
    Meetup Location: Hotel Lobby
    123 Main St, Anytown, CA
    Meetup Time: 6:00 PM
    Confirmation: ABC123

parse_transport_notes() extracts the labeled sections; text outside the known
labels is dropped. render_transport_description() rebuilds a display
description from the parsed notes.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

_DRIVER_RE = re.compile(r"Driver:[ \t]*([^\n]+)")
_PASSENGER_RE = re.compile(r"Passenger:[ \t]*([^\n]+)")
_DRIVER_INFO_RE = re.compile(
    r"Driver Info:\s*(.*?)(?=\nPassenger Info:|Confirmation:|\Z)", re.DOTALL
)
_PASSENGER_INFO_RE = re.compile(r"Passenger Info:\s*(.*?)(?=Confirmation:|\Z)", re.DOTALL)
_CONFIRMATION_RE = re.compile(r"Confirmation:[ \t]*([^\n]+)")

_MEETUP_LOCATION_RE = re.compile(r"^Meetup Location:\s*(.*)$")
_MEETUP_TIME_RE = re.compile(r"^Meetup Time:\s*(.+)$")
_LABELED_LINE_RE = re.compile(r"(.+?):\s*(.+)")
_DATE_TIME_VALUE_RE = re.compile(r"\d{2}/\d{2}/\d{4}.*(?:AM|PM)", re.IGNORECASE)

# House number followed by a street name, e.g. "123 Main St, Anytown, CA"
STREET_ADDRESS_RE = re.compile(r"^\d+[A-Za-z]?\s+[A-Za-z0-9][\w .'#-]*")


@dataclass(frozen=True)
class MeetupPoint:
    """Where and when passengers meet before a pickup."""

    location: str
    time_text: str
    address: str | None = None

    @property
    def display_location(self) -> str:
        return self.address or self.location


@dataclass(frozen=True)
class TransportNotes:
    """Structured view of a ground transport description."""

    driver: str | None = None
    passengers: list[str] = field(default_factory=list)
    driver_info: list[str] = field(default_factory=list)
    passenger_info: list[str] = field(default_factory=list)
    confirmation: str | None = None
    meetup: MeetupPoint | None = None


def _section_lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def _find_meetup(lines: list[str]) -> MeetupPoint | None:
    """Find a meetup location/time pair in a block of lines."""
    location: str | None = None
    address: str | None = None
    time_text: str | None = None

    for index, line in enumerate(lines):
        location_match = _MEETUP_LOCATION_RE.match(line)
        if location_match and location is None:
            location = location_match.group(1).strip()
            if index + 1 < len(lines) and STREET_ADDRESS_RE.match(lines[index + 1]):
                address = lines[index + 1]
            continue

        time_match = _MEETUP_TIME_RE.match(line)
        if time_match and time_text is None:
            time_text = time_match.group(1).strip()

    if not location or not time_text:
        return None
    return MeetupPoint(location=location, time_text=time_text, address=address)


def parse_transport_notes(text: str | None) -> TransportNotes:
    """Extract labeled sections from a ground transport description.

    Meetup labels are looked up inside the Passenger Info section; when the
    description has no such section the whole text is searched instead.

    Args:
        text: Free-text description (may be None or empty)

    Returns:
        TransportNotes with every recognized section filled in
    """
    if not text:
        return TransportNotes()

    driver_match = _DRIVER_RE.search(text)
    passenger_match = _PASSENGER_RE.search(text)
    driver_info_match = _DRIVER_INFO_RE.search(text)
    passenger_info_match = _PASSENGER_INFO_RE.search(text)
    confirmation_match = _CONFIRMATION_RE.search(text)

    passengers: list[str] = []
    if passenger_match:
        passengers = [p.strip() for p in passenger_match.group(1).split(",") if p.strip()]

    driver_info = _section_lines(driver_info_match.group(1)) if driver_info_match else []
    passenger_info = _section_lines(passenger_info_match.group(1)) if passenger_info_match else []

    meetup_scope = passenger_info if passenger_info_match else _section_lines(text)

    return TransportNotes(
        driver=driver_match.group(1).strip() if driver_match else None,
        passengers=passengers,
        driver_info=driver_info,
        passenger_info=passenger_info,
        confirmation=confirmation_match.group(1).strip() if confirmation_match else None,
        meetup=_find_meetup(meetup_scope),
    )


def _format_info_line(line: str, format_time: Callable[[str], str | None]) -> str:
    """Bullet one info line, reformatting "Label: MM/DD/YYYY h:mm AM" values."""
    labeled = _LABELED_LINE_RE.match(line)
    if labeled and _DATE_TIME_VALUE_RE.search(labeled.group(2)):
        display = format_time(labeled.group(2))
        if display:
            return f"• {labeled.group(1)}: {display}"
    return f"• {line}"


def render_transport_description(
    notes: TransportNotes,
    format_time: Callable[[str], str | None],
) -> str:
    """Rebuild a display description from parsed transport notes.

    Args:
        notes: Parsed notes
        format_time: Converts a date/time value to display text, or None to
            keep the line unchanged

    Returns:
        Multi-line description (empty if nothing was recognized)
    """
    parts: list[str] = []

    if notes.driver:
        parts.append(f"Driver: {notes.driver}\n\n")

    if notes.passengers:
        parts.append("Passengers:\n")
        parts.extend(f"• {passenger}\n" for passenger in notes.passengers)
        parts.append("\n")

    for heading, lines in (
        ("Driver Info", notes.driver_info),
        ("Passenger Info", notes.passenger_info),
    ):
        if lines:
            parts.append(f"{heading}:\n")
            parts.extend(f"{_format_info_line(line, format_time)}\n" for line in lines)
            parts.append("\n")

    if notes.confirmation:
        parts.append(f"Confirmation: {notes.confirmation}\n")

    return "".join(parts).strip()

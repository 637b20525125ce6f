"""Lenient parser for iCalendar (RFC 5545) event feeds.

Only the subset needed to list upcoming town events is understood: VEVENT
blocks with SUMMARY, LOCATION, URL, DESCRIPTION, DTSTART and DTEND. Recurrence
rules and VTIMEZONE components are not interpreted.

Malformed input never raises. Fields that cannot be read fall back to their
defaults:

    >>> events = parse_ics("BEGIN:VEVENT\\nDTSTART:20250601T140000Z\\nEND:VEVENT")
    >>> events[0].title
    'Event'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime

from dateutil import tz

BEGIN_EVENT = "BEGIN:VEVENT"
END_EVENT = "END:VEVENT"

_DATE_TIME_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})(Z)?$")
_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_URL_RE = re.compile(r"https?://\S+")


@dataclass
class CalendarEvent:
    """A single event read from a calendar feed."""

    title: str = "Event"
    location: str = ""
    url: str = ""
    start: datetime | None = None
    end: datetime | None = None


def unfold_lines(text: str) -> list[str]:
    """Split calendar text into logical lines.

    Continuation lines (starting with a space or tab) are joined onto the
    previous line with their leading whitespace removed.

    Args:
        text: Raw calendar text with CRLF or LF line endings

    Returns:
        List of unfolded lines
    """
    unfolded: list[str] = []
    for line in text.replace("\r\n", "\n").split("\n"):
        if line[:1] in (" ", "\t") and unfolded:
            unfolded[-1] += line.lstrip()
        else:
            unfolded.append(line)
    return unfolded


def parse_ical_date(value: str | None) -> datetime | None:
    """Parse a DTSTART/DTEND value.

    ``20250601T140000Z`` is UTC, ``20250601T140000`` is local time and
    ``20250601`` is local midnight. Every other form gives None.
    """
    if not value:
        return None

    m = _DATE_TIME_RE.match(value)
    if m:
        y, mo, d, hh, mm, ss, z = m.groups()
        zone = UTC if z else tz.tzlocal()
        try:
            return datetime(int(y), int(mo), int(d), int(hh), int(mm), int(ss), tzinfo=zone)
        except ValueError:
            return None

    m = _DATE_RE.match(value)
    if m:
        y, mo, d = m.groups()
        try:
            return datetime(int(y), int(mo), int(d), tzinfo=tz.tzlocal())
        except ValueError:
            return None

    return None


def extract_url(description: str | None) -> str:
    """Return the first http(s) URL found in free text, or an empty string."""
    if not description:
        return ""
    m = _URL_RE.search(description)
    return m.group(0) if m else ""


def normalize_event(props: dict[str, str]) -> CalendarEvent:
    """Build a CalendarEvent from raw VEVENT properties."""
    return CalendarEvent(
        title=props.get("SUMMARY") or "Event",
        location=props.get("LOCATION") or "",
        url=props.get("URL") or extract_url(props.get("DESCRIPTION")),
        start=parse_ical_date(props.get("DTSTART")),
        end=parse_ical_date(props.get("DTEND")),
    )


def parse_ics(text: str) -> list[CalendarEvent]:
    """Parse calendar text into events, in feed order.

    Args:
        text: Raw calendar text

    Returns:
        One CalendarEvent per complete VEVENT block. A block still open at
        the end of the input is dropped.
    """
    events: list[CalendarEvent] = []
    current: dict[str, str] | None = None

    for line in unfold_lines(text):
        if line == BEGIN_EVENT:
            current = {}
        elif line == END_EVENT:
            if current is not None:
                events.append(normalize_event(current))
            current = None
        elif current is not None:
            idx = line.find(":")
            if idx > 0:
                # Parameters after ';' (e.g. DTSTART;VALUE=DATE) are ignored
                key = line[:idx].split(";", 1)[0].upper()
                current[key] = line[idx + 1 :]

    return events

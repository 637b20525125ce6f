"""Feed builders and a recording upstream for endpoint tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import httpx

from paradise_edge import UpstreamClient

FEED_URL = "https://calendar.example.org/feed.ics"


def ics_stamp(dt: datetime) -> str:
    """Format an aware datetime as an iCalendar UTC date-time."""
    return dt.astimezone(UTC).strftime("%Y%m%dT%H%M%SZ")


def make_feed(*events: dict[str, str]) -> str:
    """Build a minimal VCALENDAR with one VEVENT per property dict."""
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//Test//Test//EN"]
    for props in events:
        lines.append("BEGIN:VEVENT")
        lines.extend(f"{key}:{value}" for key, value in props.items())
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


def event_in(days: float, title: str, **props: str) -> dict[str, str]:
    """VEVENT properties for an event starting ``days`` from now."""
    start = datetime.now(UTC) + timedelta(days=days)
    return {
        "UID": f"{title.lower().replace(' ', '-')}@test",
        "SUMMARY": title,
        "DTSTART": ics_stamp(start),
        "DTEND": ics_stamp(start + timedelta(hours=2)),
        **props,
    }


class Upstream:
    """Records requests and answers them with a configurable responder."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def client(self) -> UpstreamClient:
        return UpstreamClient(transport=httpx.MockTransport(self))

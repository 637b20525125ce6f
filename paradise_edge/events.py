"""Events endpoint: upcoming town events as JSON.

    GET /api/events?days=30

Fetches the town's iCalendar feed, keeps the events starting within the
requested number of days and returns them sorted by start time::

    {
      "updatedAt": "2025-06-01T12:00:00.000Z",
      "source": "Town of Surfside Beach (Events)",
      "events": [{"title": ..., "location": ..., "url": ...,
                  "start": "2025-06-03T18:00:00.000Z", "end": null}]
    }

Two cache layers sit in front of the work: one around the raw feed download
(keyed by feed URL) and one around the assembled JSON (keyed by request URL).
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
from starlette.background import BackgroundTasks
from starlette.requests import Request
from starlette.responses import Response

from .cache import CachedResponse, EdgeCache
from .config import EdgeConfig
from .ics import CalendarEvent, parse_ics
from .internal import JSON_MEDIA_TYPE, ConfigurationError, UpstreamError
from .upstream import UpstreamClient

logger = logging.getLogger("paradise_edge.events")

DEFAULT_DAYS = 30
MIN_DAYS = 1
MAX_DAYS = 90
MAX_EVENTS = 150

CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET,OPTIONS",
    "access-control-allow-headers": "content-type",
}

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def clamp_days(raw: str | None) -> int:
    """Parse the ``days`` query parameter leniently.

    A leading integer is accepted (``"12abc"`` is 12), anything unreadable
    falls back to 30, and the result is clamped to [1, 90].
    """
    if not raw:
        return DEFAULT_DAYS
    m = _LEADING_INT_RE.match(raw)
    if not m:
        return DEFAULT_DAYS
    return max(MIN_DAYS, min(int(m.group(1)), MAX_DAYS))


def filter_events(
    events: Iterable[CalendarEvent],
    now: datetime,
    days: int,
    limit: int = MAX_EVENTS,
) -> list[CalendarEvent]:
    """Select events starting within ``[now, now + days]``, earliest first.

    Events without a start are dropped. At most ``limit`` events are returned.
    """
    window_end = now + timedelta(days=days)
    upcoming = [e for e in events if e.start is not None and now <= e.start <= window_end]
    upcoming.sort(key=lambda e: e.start)  # type: ignore[arg-type, return-value]
    return upcoming[:limit]


def format_timestamp(dt: datetime | None) -> str | None:
    """Format a datetime as UTC ISO 8601 with milliseconds, e.g. 2025-06-01T14:00:00.000Z."""
    if dt is None:
        return None
    dt = dt.astimezone(UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def serialize_event(event: CalendarEvent) -> dict[str, Any]:
    return {
        "title": event.title,
        "location": event.location or "",
        "url": event.url or "",
        "start": format_timestamp(event.start),
        "end": format_timestamp(event.end),
    }


class EventsHandler:
    """Handler for the events endpoint."""

    def __init__(
        self,
        config: EdgeConfig,
        client: UpstreamClient,
        cache: EdgeCache,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize events handler.

        Args:
            config: Edge configuration (feed URL, source label, cache TTLs)
            client: Client used to download the feed
            cache: Edge cache shared with the other handlers
            now: Clock returning an aware datetime (defaults to UTC now)
        """
        self.config = config
        self.client = client
        self.cache = cache
        self.now = now or (lambda: datetime.now(UTC))

    async def handle(self, request: Request) -> Response:
        """Handle GET /api/events?days=N.

        Raises:
            ConfigurationError: ICS_URL is not configured
            UpstreamError: The feed could not be downloaded
        """
        if not self.config.ics_url:
            raise ConfigurationError("Missing ICS_URL env var")

        background = BackgroundTasks()
        days = clamp_days(request.query_params.get("days"))

        async def assemble() -> CachedResponse:
            return await self._assemble(days, background)

        cached, hit = await self.cache.get_or_compute(str(request.url), assemble, background)

        response = cached.to_response()
        if not hit:
            response.background = background
        return response

    async def fetch_feed(self, background: BackgroundTasks) -> str:
        """Download the calendar feed, going through the raw feed cache."""
        ics_url = self.config.ics_url

        async def download() -> CachedResponse:
            try:
                fetched = await self.client.fetch(
                    ics_url, headers={"User-Agent": self.config.user_agent}
                )
            except httpx.HTTPError as e:
                logger.warning("feed download failed: %s", e)
                raise UpstreamError("Failed to fetch ICS") from e
            if not fetched.ok:
                logger.warning("feed answered HTTP %d", fetched.status_code)
                raise UpstreamError("Failed to fetch ICS", status=fetched.status_code)
            return fetched.with_headers(
                cache_control=f"public, max-age={self.config.ics_cache_ttl}"
            )

        feed, _ = await self.cache.get_or_compute(ics_url, download, background)
        return feed.text

    async def _assemble(self, days: int, background: BackgroundTasks) -> CachedResponse:
        text = await self.fetch_feed(background)
        events = parse_ics(text)

        now = self.now()
        upcoming = filter_events(events, now, days)
        logger.debug("%d of %d events within %d days", len(upcoming), len(events), days)

        payload = {
            "updatedAt": format_timestamp(now),
            "source": self.config.events_source,
            "events": [serialize_event(e) for e in upcoming],
        }
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")

        headers = {
            **CORS_HEADERS,
            "content-type": JSON_MEDIA_TYPE,
            "cache-control": f"public, max-age={self.config.events_cache_ttl}",
            "content-length": str(len(body)),
        }
        return CachedResponse(status_code=200, headers=tuple(headers.items()), body=body)

"""Short-link redirects with click logging.

    GET /go/<slug>  ->  302 to the mapped destination

Every resolved click produces a ``ClickLogRecord``. The record is passed to a
``ClickSink`` after the redirect has been sent, so a slow or failing sink
never delays or breaks the redirect. The default sink writes the record to
the ``paradise_edge.clicks`` logger; a durable store only needs another sink.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Protocol

from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from .events import format_timestamp
from .internal import NotFoundError

logger = logging.getLogger("paradise_edge.redirects")
click_logger = logging.getLogger("paradise_edge.clicks")

CLICK_HEADER = "X-Paradise-Click"


@dataclass(frozen=True)
class RedirectEntry:
    """Destination and reporting metadata for one short link."""

    slug: str
    url: str
    category: str
    label: str


@dataclass(frozen=True)
class ClickLogRecord:
    """One resolved click."""

    slug: str
    category: str
    label: str
    referrer: str
    user_agent: str
    ts: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["ua"] = data.pop("user_agent")
        return data


class RedirectTable(Mapping[str, RedirectEntry]):
    """Read-only slug -> RedirectEntry mapping, built once at startup."""

    def __init__(self, entries: Iterable[RedirectEntry]) -> None:
        table: dict[str, RedirectEntry] = {}
        for entry in entries:
            if entry.slug in table:
                raise ValueError(f"duplicate redirect slug: {entry.slug}")
            table[entry.slug] = entry
        self._table = MappingProxyType(table)

    def __getitem__(self, slug: str) -> RedirectEntry:
        return self._table[slug]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def resolve(self, slug: str) -> RedirectEntry | None:
        """Look up a slug; None if unknown."""
        return self._table.get(slug)

    @classmethod
    def default(cls) -> RedirectTable:
        """The site's production short links."""
        return cls(
            [
                # Events
                RedirectEntry(
                    slug="surfside-town-events",
                    url="https://www.surfsidebeach.org/calendar.aspx?CID=29",
                    category="events",
                    label="Surfside Town Events (Full Calendar)",
                ),
                RedirectEntry(
                    slug="vmb-events",
                    url="https://www.visitmyrtlebeach.com/events-calendar",
                    category="events",
                    label="Visit Myrtle Beach Events Calendar",
                ),
                # Booking hub
                RedirectEntry(
                    slug="stay",
                    url="https://www.southerncoastvacations.com/myrtle-beach-vacation-rentals/paradise",
                    category="booking",
                    label="Paradise Booking (Southern Coast Vacations)",
                ),
            ]
        )


class ClickSink(Protocol):
    """Destination for click log records."""

    async def record(self, click: ClickLogRecord) -> None:
        """Persist or forward a click record."""
        ...


class LoggingClickSink:
    """Writes each click as one JSON line to the clicks logger."""

    async def record(self, click: ClickLogRecord) -> None:
        click_logger.info(json.dumps(click.to_dict(), ensure_ascii=False))


class RedirectHandler:
    """Handler for the /go/<slug> endpoint."""

    def __init__(
        self,
        table: RedirectTable,
        sink: ClickSink | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.table = table
        self.sink: ClickSink = sink or LoggingClickSink()
        self.now = now or (lambda: datetime.now(UTC))

    def click_record(self, entry: RedirectEntry, request: Request) -> ClickLogRecord:
        return ClickLogRecord(
            slug=entry.slug,
            category=entry.category,
            label=entry.label,
            referrer=request.headers.get("referer") or "direct",
            user_agent=request.headers.get("user-agent") or "",
            ts=format_timestamp(self.now()) or "",
        )

    async def _record_quietly(self, click: ClickLogRecord) -> None:
        try:
            await self.sink.record(click)
        except Exception:
            logger.warning("click sink failed for %s", click.slug, exc_info=True)

    async def handle(self, request: Request, slug: str) -> Response:
        """Resolve a slug and redirect.

        Raises:
            NotFoundError: The slug is not in the table
        """
        entry = self.table.resolve(slug)
        if entry is None:
            raise NotFoundError("Link not found")

        click = self.click_record(entry, request)
        response = RedirectResponse(
            url=entry.url,
            status_code=302,
            background=BackgroundTask(self._record_quietly, click),
        )
        response.headers[CLICK_HEADER] = f"{click.category}:{click.slug}"
        return response

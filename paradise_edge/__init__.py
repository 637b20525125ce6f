"""Edge proxy for the Paradise vacation-rental site: events feed, short links and weather."""

from .cache import CachedResponse, EdgeCache
from .config import EdgeConfig
from .events import EventsHandler, clamp_days, filter_events, serialize_event
from .ics import CalendarEvent, parse_ics, unfold_lines
from .redirects import (
    ClickLogRecord,
    ClickSink,
    LoggingClickSink,
    RedirectEntry,
    RedirectHandler,
    RedirectTable,
)
from .server import Handler, create_app
from .upstream import UpstreamClient
from .weather import WeatherHandler

__version__ = "0.1.0"

__all__ = [
    "CachedResponse",
    "EdgeCache",
    "EdgeConfig",
    "EventsHandler",
    "clamp_days",
    "filter_events",
    "serialize_event",
    "CalendarEvent",
    "parse_ics",
    "unfold_lines",
    "ClickLogRecord",
    "ClickSink",
    "LoggingClickSink",
    "RedirectEntry",
    "RedirectHandler",
    "RedirectTable",
    "Handler",
    "create_app",
    "UpstreamClient",
    "WeatherHandler",
]

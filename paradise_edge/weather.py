"""Weather endpoint: current conditions from the on-site Tempest station.

    GET /api/weather

Keeps the Tempest API token on the server and returns a small, stable payload
for the site's weather pill. The raw upstream answer is edge-cached briefly;
the client-facing response is never cached by browsers.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import UTC, datetime
from typing import Any

import httpx
from starlette.background import BackgroundTasks
from starlette.requests import Request
from starlette.responses import Response

from .cache import CachedResponse, EdgeCache
from .config import EdgeConfig
from .events import format_timestamp
from .internal import JSON_MEDIA_TYPE
from .upstream import UpstreamClient

logger = logging.getLogger("paradise_edge.weather")

WEATHER_PATH = "/api/weather"
TEMPEST_FORECAST_URL = "https://swd.weatherflow.com/swd/rest/better_forecast"
SOURCE = "tempest_station"
LABEL = "Current Weather · At the House"

# Checked in order; first match wins
_ICONS = (
    (("thunder",), "⛈️"),
    (("snow",), "❄️"),
    (("rain", "drizzle"), "🌧️"),
    (("fog", "mist"), "🌫️"),
    (("cloud",), "⛅"),
    (("clear", "sun"), "☀️"),
)
DEFAULT_ICON = "⛅"


def pick_icon(conditions: str | None) -> str:
    """Map a free-text condition (e.g. "Rain Likely") to an emoji."""
    c = (conditions or "").lower()
    for words, icon in _ICONS:
        if any(word in c for word in words):
            return icon
    return DEFAULT_ICON


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def _station_id(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def build_payload(data: dict[str, Any], station_id: str) -> dict[str, Any]:
    """Shape the Tempest better_forecast response into the site payload."""
    cc = data.get("current_conditions")
    if not isinstance(cc, dict):
        cc = {}
    conditions = str(cc.get("conditions") or "").strip()
    ts = _number(cc.get("time"))

    updated_iso = None
    if ts:
        updated_iso = format_timestamp(datetime.fromtimestamp(ts, UTC))

    return {
        "ok": True,
        "station_id": _station_id(station_id),
        "temp_f": _number(cc.get("air_temperature")),
        "condition": conditions or None,
        "icon": pick_icon(conditions),
        "updated_iso": updated_iso,
        "source": SOURCE,
        "label": LABEL,
    }


class WeatherHandler:
    """Handler for the weather endpoint, with its own CORS allow-list."""

    def __init__(self, config: EdgeConfig, client: UpstreamClient, cache: EdgeCache) -> None:
        self.config = config
        self.client = client
        self.cache = cache
        self.allowed_origins = frozenset(config.weather_allowed_origins)

    def cors_headers(self, request: Request) -> dict[str, str]:
        origin = request.headers.get("origin", "")
        headers: dict[str, str] = {}
        if origin in self.allowed_origins:
            headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
        headers["Access-Control-Allow-Methods"] = "GET,OPTIONS"
        headers["Access-Control-Allow-Headers"] = "Content-Type"
        headers["Access-Control-Max-Age"] = "86400"
        return headers

    def json_response(self, request: Request, obj: dict[str, Any], status_code: int = 200) -> Response:
        headers = self.cors_headers(request)
        headers["Cache-Control"] = "no-store"
        return Response(
            content=json.dumps(obj, ensure_ascii=False),
            status_code=status_code,
            media_type=JSON_MEDIA_TYPE,
            headers=headers,
        )

    def upstream_url(self) -> str:
        params = {
            "station_id": self.config.tempest_station_id,
            "units_temp": "f",
            "units_wind": "mph",
            "units_pressure": "inhg",
            "units_precip": "in",
            "units_distance": "mi",
            "token": self.config.tempest_token,
        }
        return str(httpx.URL(TEMPEST_FORECAST_URL, params=params))

    async def handle(self, request: Request) -> Response:
        """Handle a request routed to /api/weather."""
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=self.cors_headers(request))

        if request.method not in ("GET", "HEAD"):
            return Response(
                "Method not allowed",
                status_code=405,
                media_type="text/plain",
                headers={"Allow": "GET, OPTIONS"},
            )

        if not self.config.tempest_token:
            return self.json_response(request, {"ok": False, "error": "Missing TEMPEST_TOKEN"}, 500)

        background = BackgroundTasks()
        url = self.upstream_url()

        async def fetch() -> CachedResponse:
            fetched = await self.client.fetch(url, headers={"Accept": "application/json"})
            if not fetched.ok:
                return fetched
            return fetched.with_headers(
                cache_control=f"public, max-age={self.config.weather_cache_ttl}"
            )

        try:
            upstream, _ = await self.cache.get_or_compute(url, fetch, background)
        except httpx.HTTPError as e:
            logger.warning("weather upstream failed: %s", e)
            return self.json_response(request, {"ok": False, "error": "Upstream request failed"}, 502)

        if not upstream.ok:
            logger.warning("weather upstream answered HTTP %d", upstream.status_code)
            return self.json_response(
                request, {"ok": False, "error": f"Upstream HTTP {upstream.status_code}"}, 502
            )

        try:
            data = json.loads(upstream.body)
        except ValueError:
            return self.json_response(request, {"ok": False, "error": "Upstream sent invalid JSON"}, 502)
        if not isinstance(data, dict):
            data = {}

        response = self.json_response(request, build_payload(data, self.config.tempest_station_id))
        response.background = background
        return response

"""Configuration for the edge proxy, read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_EVENTS_SOURCE = "Town of Surfside Beach (Events)"
DEFAULT_STATION_ID = "204460"
DEFAULT_ALLOWED_ORIGINS = (
    "https://davidleetaylor07.github.io",
    "https://paradisesurfsidesc.com",
    "https://www.paradisesurfsidesc.com",
)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    return float(value)


def _env_origins() -> tuple[str, ...]:
    value = os.getenv("WEATHER_ALLOWED_ORIGINS")
    if not value:
        return DEFAULT_ALLOWED_ORIGINS
    return tuple(origin.strip() for origin in value.split(",") if origin.strip())


@dataclass
class EdgeConfig:
    """Configuration for the events, redirect and weather endpoints.

    Secrets (ICS_URL, TEMPEST_TOKEN) have no defaults; the endpoints that
    need them answer 500 until they are set.
    """

    # Events feed
    ics_url: str = field(default_factory=lambda: os.getenv("ICS_URL", ""))
    events_source: str = field(
        default_factory=lambda: os.getenv("EVENTS_SOURCE", DEFAULT_EVENTS_SOURCE)
    )
    events_cache_ttl: int = field(default_factory=lambda: _env_int("EVENTS_CACHE_TTL", 3600))
    ics_cache_ttl: int = field(default_factory=lambda: _env_int("ICS_CACHE_TTL", 3600))
    user_agent: str = "ParadiseEventsBot/1.0"

    # Weather station
    tempest_station_id: str = field(
        default_factory=lambda: os.getenv("TEMPEST_STATION_ID", DEFAULT_STATION_ID)
    )
    tempest_token: str = field(default_factory=lambda: os.getenv("TEMPEST_TOKEN", ""))
    weather_cache_ttl: int = field(default_factory=lambda: _env_int("WEATHER_CACHE_TTL", 60))
    weather_allowed_origins: tuple[str, ...] = field(default_factory=_env_origins)

    # Upstream HTTP
    timeout: float = field(default_factory=lambda: _env_float("UPSTREAM_TIMEOUT", 30.0))

"""Shared fixtures for edge proxy tests."""

import pytest

from paradise_edge import EdgeConfig


@pytest.fixture
def config() -> EdgeConfig:
    return EdgeConfig(
        ics_url="https://calendar.example.org/feed.ics",
        events_source="Town of Surfside Beach (Events)",
        events_cache_ttl=3600,
        ics_cache_ttl=3600,
        tempest_station_id="204460",
        tempest_token="test-token",
        weather_cache_ttl=60,
        weather_allowed_origins=("https://paradisesurfsidesc.com",),
        timeout=5.0,
    )

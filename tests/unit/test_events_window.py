"""Tests for selecting, ordering and serializing upcoming events."""

from datetime import UTC, datetime, timedelta

from paradise_edge.events import (
    MAX_EVENTS,
    clamp_days,
    filter_events,
    format_timestamp,
    serialize_event,
)
from paradise_edge.ics import CalendarEvent

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def at(days: float, title: str = "Event") -> CalendarEvent:
    return CalendarEvent(title=title, start=NOW + timedelta(days=days))


def test_clamp_days():
    """Test lenient parsing of the days parameter."""
    assert clamp_days(None) == 30
    assert clamp_days("") == 30
    assert clamp_days("abc") == 30
    assert clamp_days("7") == 7
    assert clamp_days("12abc") == 12
    assert clamp_days(" 14") == 14
    assert clamp_days("90") == 90
    assert clamp_days("500") == 90
    assert clamp_days("0") == 1
    assert clamp_days("-5") == 1


def test_filter_keeps_only_events_inside_window():
    """Test that a 10-day-out event is kept and a 40-day-out event is not."""
    soon = at(10, "Soon")
    later = at(40, "Later")

    result = filter_events([later, soon], NOW, days=30)

    assert [e.title for e in result] == ["Soon"]


def test_filter_window_bounds_are_inclusive():
    """Test that events exactly at now and at now + days are kept."""
    events = [at(0, "Now"), at(30, "Edge"), at(-0.001, "Past"), at(30.001, "Beyond")]

    result = filter_events(events, NOW, days=30)

    assert [e.title for e in result] == ["Now", "Edge"]


def test_filter_drops_events_without_start():
    """Test that events with no start never appear."""
    events = [CalendarEvent(title="Undated"), at(1, "Dated")]

    result = filter_events(events, NOW, days=30)

    assert [e.title for e in result] == ["Dated"]


def test_filter_sorts_ascending_and_is_subset():
    """Test ordering by start and that output is drawn from input."""
    events = [at(5, "C"), at(1, "A"), at(3, "B"), at(60, "Out")]

    result = filter_events(events, NOW, days=30)

    assert [e.title for e in result] == ["A", "B", "C"]
    assert all(e in events for e in result)
    for first, second in zip(result, result[1:]):
        assert first.start <= second.start


def test_filter_truncates_to_limit():
    """Test that at most 150 events are returned, earliest first."""
    events = [at(i / 10, f"E{i}") for i in range(200, 0, -1)]

    result = filter_events(events, NOW, days=30)

    assert len(result) == MAX_EVENTS
    assert result[0].title == "E1"
    assert result[-1].title == "E150"


def test_format_timestamp():
    """Test UTC ISO 8601 formatting with milliseconds."""
    assert format_timestamp(None) is None
    assert format_timestamp(datetime(2025, 6, 1, 14, 0, tzinfo=UTC)) == "2025-06-01T14:00:00.000Z"
    assert (
        format_timestamp(datetime(2025, 6, 1, 14, 0, 5, 123456, tzinfo=UTC))
        == "2025-06-01T14:00:05.123Z"
    )


def test_serialize_event():
    """Test the flattened JSON shape of an event."""
    event = CalendarEvent(
        title="Farmers Market",
        location="Passive Park",
        url="https://example.org/market",
        start=datetime(2025, 6, 3, 13, 0, tzinfo=UTC),
    )

    assert serialize_event(event) == {
        "title": "Farmers Market",
        "location": "Passive Park",
        "url": "https://example.org/market",
        "start": "2025-06-03T13:00:00.000Z",
        "end": None,
    }

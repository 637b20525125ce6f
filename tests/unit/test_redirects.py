"""Tests for the short-link table and click records."""

import pytest

from paradise_edge.redirects import ClickLogRecord, RedirectEntry, RedirectTable


def test_default_table_contents():
    """Test that the production links are present."""
    table = RedirectTable.default()

    assert set(table) == {"surfside-town-events", "vmb-events", "stay"}
    stay = table.resolve("stay")
    assert stay is not None
    assert stay.category == "booking"
    assert stay.url.startswith("https://www.southerncoastvacations.com/")


def test_resolve_unknown_slug():
    """Test that unknown slugs resolve to None."""
    table = RedirectTable.default()

    assert table.resolve("unknown-slug") is None
    assert table.resolve("") is None
    assert table.resolve("STAY") is None


def test_resolve_is_stable():
    """Test that a slug always resolves to the same destination."""
    table = RedirectTable.default()

    assert {table.resolve("vmb-events") for _ in range(5)} == {table["vmb-events"]}


def test_duplicate_slug_rejected():
    """Test that a table cannot map one slug twice."""
    entry = RedirectEntry(slug="a", url="https://a.example", category="x", label="A")
    other = RedirectEntry(slug="a", url="https://b.example", category="x", label="B")

    with pytest.raises(ValueError, match="duplicate redirect slug"):
        RedirectTable([entry, other])


def test_table_is_read_only():
    """Test that the table cannot be modified after construction."""
    table = RedirectTable.default()

    with pytest.raises(TypeError):
        table["new"] = table["stay"]  # type: ignore[index]


def test_click_record_to_dict():
    """Test the wire shape of a click record."""
    record = ClickLogRecord(
        slug="stay",
        category="booking",
        label="Paradise Booking",
        referrer="direct",
        user_agent="Mozilla/5.0",
        ts="2025-06-01T12:00:00.000Z",
    )

    assert record.to_dict() == {
        "slug": "stay",
        "category": "booking",
        "label": "Paradise Booking",
        "referrer": "direct",
        "ua": "Mozilla/5.0",
        "ts": "2025-06-01T12:00:00.000Z",
    }

"""Tests for utility functions in portfolio metrics."""

import datetime

from .utils import format_timestamp, get_extension, parse_timestamp, to_epoch_millis


def test_get_extension():
    """Test get_extension functionality."""
    assert get_extension("foo.csv") == ".csv"
    assert get_extension("/path/to/foo.XLSX") == ".xlsx"
    assert get_extension("foo") == ""


def test_parse_timestamp():
    """Timestamps are parsed from strings, dates and epoch milliseconds."""
    expected = datetime.datetime(2026, 2, 10, 9, 30)

    assert parse_timestamp("2026-02-10T09:30:00") == expected
    assert parse_timestamp(expected) is expected
    assert parse_timestamp(datetime.date(2026, 2, 10)) == datetime.datetime(2026, 2, 10)
    assert parse_timestamp(to_epoch_millis(expected)) == expected
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None


def test_format_timestamp():
    """Timestamps are written in ISO format."""
    assert format_timestamp(datetime.datetime(2026, 2, 10, 9, 30)) == "2026-02-10T09:30:00"
    assert format_timestamp(None) is None

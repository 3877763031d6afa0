from datetime import datetime, timezone

import pytest

from git_stats.filtering.services.date_parsing import (
    get_date_range,
    parse_date,
    parse_relative_date,
)
from git_stats.git.domain.errors import ValidationError

# A Wednesday.
NOW = datetime(2024, 3, 13, 15, 45, 30)


@pytest.mark.parametrize(
    "text",
    ["2024-01-15", "2024/01/15", "01/15/2024", "15-01-2024", "January 15, 2024", "Jan 15, 2024", "15 Jan 2024"],
)
def test_parse_absolute_formats(text):
    assert parse_date(text) == datetime(2024, 1, 15)


def test_parse_iso_with_zone():
    parsed = parse_date("2024-01-15T10:30:00Z")

    assert parsed == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def test_parse_date_falls_back_to_relative():
    assert parse_date("3 days ago", now=NOW) == datetime(2024, 3, 10, 15, 45, 30)


@pytest.mark.parametrize("text", ["", "   ", "next tuesday-ish", "32/13/2024"])
def test_parse_date_rejects(text):
    with pytest.raises(ValidationError):
        parse_date(text, now=NOW)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("today", datetime(2024, 3, 13)),
        ("Yesterday", datetime(2024, 3, 12)),
        ("last week", datetime(2024, 3, 6, 15, 45, 30)),
        ("last month", datetime(2024, 2, 13, 15, 45, 30)),
        ("last year", datetime(2023, 3, 13, 15, 45, 30)),
        ("1 day ago", datetime(2024, 3, 12, 15, 45, 30)),
        ("2 weeks ago", datetime(2024, 2, 28, 15, 45, 30)),
        ("a month ago", datetime(2024, 2, 13, 15, 45, 30)),
        ("three hours ago", datetime(2024, 3, 13, 12, 45, 30)),
        ("10 minutes ago", datetime(2024, 3, 13, 15, 35, 30)),
        ("2 years ago", datetime(2022, 3, 13, 15, 45, 30)),
    ],
)
def test_parse_relative_date(text, expected):
    assert parse_relative_date(text, now=NOW) == expected


def test_relative_months_clamp_to_month_end():
    assert parse_relative_date("1 month ago", now=datetime(2024, 3, 31)) == datetime(2024, 2, 29)


@pytest.mark.parametrize("text", ["eleven days ago", "2 fortnights ago", "soon"])
def test_parse_relative_date_rejects(text):
    with pytest.raises(ValidationError):
        parse_relative_date(text, now=NOW)


@pytest.mark.parametrize(
    "name, start, end",
    [
        ("today", datetime(2024, 3, 13), NOW),
        ("yesterday", datetime(2024, 3, 12), datetime(2024, 3, 13)),
        ("this week", datetime(2024, 3, 11), NOW),
        ("last week", datetime(2024, 3, 4), datetime(2024, 3, 11)),
        ("month", datetime(2024, 3, 1), NOW),
        ("last month", datetime(2024, 2, 1), datetime(2024, 3, 1)),
        ("this year", datetime(2024, 1, 1), NOW),
        ("last year", datetime(2023, 1, 1), datetime(2024, 1, 1)),
    ],
)
def test_get_date_range(name, start, end):
    assert get_date_range(name, now=NOW) == (start, end)


def test_get_date_range_rejects_unknown_name():
    with pytest.raises(ValidationError):
        get_date_range("fortnight", now=NOW)

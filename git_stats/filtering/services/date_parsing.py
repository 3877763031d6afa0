"""Parsing of absolute and relative date expressions."""

import re
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from git_stats.git.domain.errors import ValidationError

ABSOLUTE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)

NUMBER_WORDS: dict[str, int] = {
    "a": 1,
    "an": 1,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
}

RELATIVE_PATTERN = re.compile(r"^(?P<amount>\w+)\s+(?P<unit>[a-z]+?)s?\s+ago$")

UNIT_DELTAS: dict[str, relativedelta] = {
    "second": relativedelta(seconds=1),
    "minute": relativedelta(minutes=1),
    "hour": relativedelta(hours=1),
    "day": relativedelta(days=1),
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
    "year": relativedelta(years=1),
}


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def parse_date(text: str, now: datetime | None = None) -> datetime:
    """
    Parse an absolute date, falling back to a relative expression.

    Args:
        text: ``2024-01-15``, ``01/15/2024``, ``Jan 15, 2024``, ISO 8601,
            or anything parse_relative_date accepts
        now: Reference time for relative expressions. Defaults to now

    Returns:
        Parsed datetime

    Raises:
        ValidationError: If the text is empty or not a recognized date
    """
    value = text.strip() if text else ""
    if not value:
        raise ValidationError("empty date string", field="date")

    for date_format in ABSOLUTE_FORMATS:
        try:
            return datetime.strptime(value, date_format)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass

    try:
        return parse_relative_date(value, now)
    except ValidationError as e:
        raise ValidationError(f"unable to parse date: {text}", field="date") from e


def parse_relative_date(text: str, now: datetime | None = None) -> datetime:
    """
    Parse a relative date expression.

    Supports ``today``, ``yesterday``, ``last week|month|year`` and
    ``N unit(s) ago`` where N is a number or a word from ``a`` to ``ten``.

    Args:
        text: Relative expression
        now: Reference time. Defaults to now

    Returns:
        Datetime relative to ``now``

    Raises:
        ValidationError: If the expression is not recognized
    """
    now = now or datetime.now()
    value = " ".join(text.strip().lower().split())

    match value:
        case "today":
            return _start_of_day(now)
        case "yesterday":
            return _start_of_day(now - timedelta(days=1))
        case "last week":
            return now - relativedelta(weeks=1)
        case "last month":
            return now - relativedelta(months=1)
        case "last year":
            return now - relativedelta(years=1)

    parsed = RELATIVE_PATTERN.match(value)
    if not parsed:
        raise ValidationError(f"unable to parse relative date: {text}", field="date")

    amount_text, unit = parsed.group("amount"), parsed.group("unit")
    if amount_text.isdigit():
        amount = int(amount_text)
    elif amount_text in NUMBER_WORDS:
        amount = NUMBER_WORDS[amount_text]
    else:
        raise ValidationError(f"invalid amount in relative date: {amount_text}", field="date")
    if unit not in UNIT_DELTAS:
        raise ValidationError(f"unsupported time unit: {unit}", field="date")

    return now - UNIT_DELTAS[unit] * amount


def get_date_range(name: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """
    Resolve a named range to ``(start, end)``.

    Weeks start on Monday. Ranges that include the current period end at
    ``now``; past periods end at the start of the following period.

    Args:
        name: ``today``, ``yesterday``, ``this week``, ``last week``,
            ``this month``, ``last month``, ``this year`` or ``last year``
        now: Reference time. Defaults to now

    Raises:
        ValidationError: If the range name is unknown
    """
    now = now or datetime.now()
    today = _start_of_day(now)
    week_start = today - timedelta(days=today.weekday())
    month_start = today.replace(day=1)
    year_start = today.replace(month=1, day=1)

    match " ".join(name.strip().lower().split()):
        case "today":
            return today, now
        case "yesterday":
            return today - timedelta(days=1), today
        case "week" | "this week":
            return week_start, now
        case "last week":
            return week_start - timedelta(weeks=1), week_start
        case "month" | "this month":
            return month_start, now
        case "last month":
            return month_start - relativedelta(months=1), month_start
        case "year" | "this year":
            return year_start, now
        case "last year":
            return year_start - relativedelta(years=1), year_start
        case _:
            raise ValidationError(f"unknown date range: {name}", field="date_range")

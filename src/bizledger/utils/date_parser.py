"""Date and reporting-period parsing."""

from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

PERIODS = [
    "today",
    "this-week",
    "this-month",
    "this-quarter",
    "this-year",
    "last-week",
    "last-month",
    "last-quarter",
    "last-year",
]


def _quarter_start(day: date) -> date:
    return day.replace(month=3 * ((day.month - 1) // 3) + 1, day=1)


def _start_of(unit: str, day: date) -> Optional[date]:
    if unit == "week":
        return day - timedelta(days=day.weekday())
    if unit == "month":
        return day.replace(day=1)
    if unit == "quarter":
        return _quarter_start(day)
    if unit == "year":
        return day.replace(month=1, day=1)
    return None


_STEP = {
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
    "year": relativedelta(years=1),
}


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse an absolute or relative date.

    Relative forms: "today", "yesterday", "tomorrow", "N days ago",
    "this|last|next week|month|quarter|year" (first day of that period) and
    "last <weekday>".

    Args:
        date_str: Date text, e.g. "2024-01-15", "Jan 15 2024", "last month"
        today: Reference date (defaults to the current date)

    Raises:
        ValueError: If the text cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    fixed = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in fixed:
        return fixed[text]

    words = text.split()
    if len(words) == 3 and words[1:] == ["days", "ago"] and words[0].isdigit():
        return today - timedelta(days=int(words[0]))

    if len(words) == 2 and words[0] in ("this", "last", "next"):
        which, unit = words
        if which == "last" and unit in WEEKDAYS:
            days_ago = (today.weekday() - WEEKDAYS.index(unit)) % 7 or 7
            return today - timedelta(days=days_ago)
        start = _start_of(unit, today)
        if start is not None:
            if which == "last":
                return start - _STEP[unit]
            if which == "next":
                return start + _STEP[unit]
            return start

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Start and end dates (inclusive) for a named period.

    "this-*" periods end today; "last-*" periods cover the whole previous
    period.

    Raises:
        ValueError: If the period name is not one of PERIODS
    """
    name = period.strip().lower()
    today = today or date.today()

    if name == "today":
        return today, today

    which, _, unit = name.partition("-")
    start = _start_of(unit, today) if which in ("this", "last") else None
    if start is None:
        raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")

    if which == "this":
        return start, today
    previous_start = start - _STEP[unit]
    return previous_start, start - timedelta(days=1)

"""Calendar helpers on the server-local clock.

All timestamps are stored as naive wall-clock datetimes in ``settings.timezone``;
day and week windows are half-open ``[start, end)`` ranges.
"""

from datetime import date, datetime, time, timedelta

from backend.app.core.config import settings


def local_now() -> datetime:
    """Current server-local wall-clock time (naive)."""
    return datetime.now(settings.tzinfo).replace(tzinfo=None)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return ``[day 00:00, day+1 00:00)``."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def start_of_week(day: date) -> date:
    """Roll back to the most recent Monday (Sunday rolls back six days)."""
    return day - timedelta(days=day.weekday())


def week_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the Monday-anchored week containing ``day`` as ``[Mon 00:00, next Mon 00:00)``."""
    start = datetime.combine(start_of_week(day), time.min)
    return start, start + timedelta(days=7)


def iso_week_number(day: date) -> int:
    """ISO-8601 week number (weeks start Monday, week 1 holds the first Thursday)."""
    return day.isocalendar()[1]


def short_date(day: date) -> str:
    """Render like ``Jan 5``."""
    return f"{day:%b} {day.day}"


def short_date_with_year(day: date) -> str:
    """Render like ``Jan 11, 2024``."""
    return f"{day:%b} {day.day}, {day.year}"

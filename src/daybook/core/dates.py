"""Pure calendar-date arithmetic - no time of day, no time zones."""

from datetime import date, datetime, timedelta

DateLike = date | datetime | str


def to_date(value: DateLike) -> date:
    """Normalize a date, datetime or YYYY-MM-DD string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def day_key(value: DateLike) -> str:
    """Storage key for a day (YYYY-MM-DD)."""
    return to_date(value).isoformat()


def days_between(a: DateLike, b: DateLike) -> int:
    return (to_date(b) - to_date(a)).days


def weeks_between(a: DateLike, b: DateLike) -> int:
    return days_between(a, b) // 7


def months_between(a: DateLike, b: DateLike) -> int:
    da, db = to_date(a), to_date(b)
    return (db.year - da.year) * 12 + (db.month - da.month)


def js_weekday(value: DateLike) -> int:
    """Day of week with Sunday = 0 ... Saturday = 6."""
    return (to_date(value).weekday() + 1) % 7


def week_start(value: DateLike) -> date:
    """Monday of the week containing the given day."""
    d = to_date(value)
    return d - timedelta(days=d.weekday())


def week_days(value: DateLike) -> list[date]:
    """The seven days of the week containing the given day, Monday first."""
    start = week_start(value)
    return [start + timedelta(days=i) for i in range(7)]

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from cadence.core.exceptions import InvalidDateError


def as_date(value: date | datetime) -> date:
    """Calendar date of a date or timestamp (timestamps taken as-is, no tz shift)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def week_start(value: date | datetime | None = None) -> date:
    """Monday of the ISO week containing ``value`` (default: today, UTC)."""
    d = as_date(value) if value is not None else today_utc()
    return d - timedelta(days=d.weekday())


def first_monday_after(value: date | datetime) -> date:
    """First Monday strictly after ``value``."""
    d = as_date(value)
    return d + timedelta(days=7 - d.weekday())


def weekly_mondays(start: date, end: date) -> list[date]:
    """Mondays from ``start`` through ``end`` inclusive, 7 days apart."""
    out: list[date] = []
    current = start
    while current <= end:
        out.append(current)
        current += timedelta(days=7)
    return out


def parse_date(value: str | date | datetime | None) -> date | None:
    """Parse an ISO ``YYYY-MM-DD`` string; dates pass through, blanks are None."""
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return as_date(value)

    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidDateError(f"Invalid date format: {text!r} (expected YYYY-MM-DD)") from None


def to_timestamp_ms(d: date) -> int:
    """Milliseconds since the epoch for midnight UTC of ``d``."""
    midnight = datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    return int(midnight.timestamp() * 1000)

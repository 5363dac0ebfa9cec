from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


END_OF_DAY = time(23, 59, 59, 999000)


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" is midnight UTC of that day
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value) -> Optional[date]:
    """Accept a date, a datetime or an ISO string ("2026-03-01" or a full timestamp)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    if len(s) == 10:
        return date.fromisoformat(s)
    return parse_iso_datetime(s).date()


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def _zone(tz_name: Optional[str]):
    if not tz_name or tz_name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(tz_name)


def day_bounds(day: date, tz_name: Optional[str] = None) -> tuple[datetime, datetime]:
    """
    Local midnight .. 23:59:59.999 of `day` in `tz_name`, returned as UTC-naive
    datetimes so they compare directly against stored columns.
    """
    zone = _zone(tz_name)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day, END_OF_DAY, tzinfo=zone)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def local_today(tz_name: Optional[str] = None) -> date:
    """Calendar date of 'now' on the wall clock of `tz_name`."""
    now = utcnow().replace(tzinfo=timezone.utc)
    return now.astimezone(_zone(tz_name)).date()


def range_bounds(start_day: date, end_day: date, tz_name: Optional[str] = None) -> tuple[datetime, datetime]:
    """Inclusive calendar-day range as UTC-naive bounds."""
    start, _ = day_bounds(start_day, tz_name)
    _, end = day_bounds(end_day, tz_name)
    return start, end


def calendar_days(start_day: date, end_day: date) -> int:
    """Number of calendar days in an inclusive range (never less than 1)."""
    return max((end_day - start_day).days + 1, 1)


def month_start(dt: datetime) -> datetime:
    return datetime(dt.year, dt.month, 1)


def previous_month_bounds(dt: datetime) -> tuple[datetime, datetime]:
    """First instant and last millisecond of the month before `dt`."""
    this_month = month_start(dt)
    last_day_prev = this_month - timedelta(days=1)
    start = datetime(last_day_prev.year, last_day_prev.month, 1)
    end = datetime.combine(last_day_prev.date(), END_OF_DAY)
    return start, end

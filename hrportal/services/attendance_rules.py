"""
Attendance rules: local time conversion, late arrival, work hours.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

STATUS_PRESENT = "present"
STATUS_LATE = "late"


def parse_offset(tz_offset: str) -> timezone:
    """Turn ``"+05:30"`` / ``"-04:00"`` into a fixed-offset timezone."""
    sign = -1 if tz_offset.startswith("-") else 1
    hours, _, minutes = tz_offset.lstrip("+-").partition(":")
    delta = timedelta(hours=int(hours), minutes=int(minutes or 0))
    return timezone(sign * delta)


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_local(ts: datetime, tz_offset: str) -> datetime:
    return ensure_utc(ts).astimezone(parse_offset(tz_offset))


def local_today(tz_offset: str, now: datetime | None = None) -> date:
    return to_local(now or datetime.now(timezone.utc), tz_offset).date()


def classify_check_in(check_in: datetime, cutoff: str = "09:30", tz_offset: str = "+00:00") -> str:
    """``late`` when the local HH:MM of *check_in* is after *cutoff*, else ``present``.

    Seconds are ignored, so 09:30:59 still counts as on time.
    """
    local = to_local(check_in, tz_offset)
    if local.time().replace(second=0, microsecond=0) > parse_hhmm(cutoff):
        return STATUS_LATE
    return STATUS_PRESENT


def compute_work_hours(check_in: datetime, check_out: datetime) -> float:
    seconds = (ensure_utc(check_out) - ensure_utc(check_in)).total_seconds()
    return round(max(0.0, seconds) / 3600, 2)

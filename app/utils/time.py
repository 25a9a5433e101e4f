"""Time utilities (IST by default)."""

from datetime import date, datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

IST = ZoneInfo("Asia/Kolkata")


def now_ist_naive() -> datetime:
    """
    Current time in IST, returned as naive datetime for DB storage.
    """
    return datetime.now(IST).replace(tzinfo=None)


def to_ist(dt: datetime, naive_assumed_tz: tzinfo = timezone.utc) -> datetime:
    """Convert datetime to IST timezone-aware value."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=naive_assumed_tz)
    return dt.astimezone(IST)


def to_ist_iso_db(dt: datetime) -> str:
    """
    Convert a stored datetime to an IST ISO string.

    DB timestamps in this app are stored as naive IST, so naive values are
    interpreted as IST (not UTC) here.
    """
    return to_ist(dt, naive_assumed_tz=IST).isoformat()


def today_in(tz_name: Optional[str] = None) -> date:
    """Calendar date in the given zone (IST when omitted)."""
    tz = ZoneInfo(tz_name) if tz_name else IST
    return datetime.now(tz).date()


def date_key(day: date) -> str:
    """YYYY-MM-DD key; lexicographic order equals chronological order."""
    return day.strftime("%Y-%m-%d")


def month_prefix(day: date) -> str:
    """YYYY-MM prefix shared by every date key of that month."""
    return day.strftime("%Y-%m")

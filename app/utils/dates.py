"""Local-date helpers for reports and bulk entry."""
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from app.config import settings


@lru_cache
def get_timezone(name: str) -> tzinfo:
    """Resolve an IANA zone name; UTC never needs tz data."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def report_timezone() -> tzinfo:
    """Zone reports and bulk entries are expressed in."""
    return get_timezone(settings.report_timezone)


def local_to_utc(day: date, at: time, tz: tzinfo) -> datetime:
    """
    Naive UTC timestamp for a wall-clock time on a local day.

    Examples:
        >>> local_to_utc(date(2024, 1, 1), time(9, 0), timezone.utc)
        datetime.datetime(2024, 1, 1, 9, 0)
    """
    local = datetime.combine(day, at, tzinfo=tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def local_day_bounds(start_day: date, end_day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """
    Half-open naive UTC window covering local days ``start_day``..``end_day``.

    Examples:
        >>> local_day_bounds(date(2024, 1, 1), date(2024, 1, 1), timezone.utc)
        (datetime.datetime(2024, 1, 1, 0, 0), datetime.datetime(2024, 1, 2, 0, 0))
    """
    return (
        local_to_utc(start_day, time.min, tz),
        local_to_utc(end_day + timedelta(days=1), time.min, tz),
    )


def local_today(tz: tzinfo) -> date:
    """Today's date in ``tz``."""
    return datetime.now(tz).date()

"""
Business day bucketing

The shop closes its books at a configurable hour:minute instead of strict
midnight. With a 15:00 cutoff, anything recorded at or after 15:00 belongs to
the next business day. A 00:00 cutoff is the plain calendar day.

Rows are bucketed here before they reach the reconciliation engine, which
never looks at timestamps.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from app.core.config import settings


def _validate_cutoff(cutoff_hour: int, cutoff_minute: int) -> None:
    if not 0 <= cutoff_hour <= 23:
        raise ValueError(f"cutoff_hour must be between 0 and 23, got {cutoff_hour}")
    if not 0 <= cutoff_minute <= 59:
        raise ValueError(f"cutoff_minute must be between 0 and 59, got {cutoff_minute}")


def business_timezone() -> ZoneInfo:
    return ZoneInfo(settings.BUSINESS_TIMEZONE)


def now_local() -> datetime:
    """Current time in the shop's timezone"""
    return datetime.now(business_timezone())


def to_local(timestamp: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """
    Convert a timestamp to shop-local wall clock time.

    Naive timestamps are taken as already shop-local.
    """
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone(tz or business_timezone())


def bucket_date(timestamp: datetime, cutoff_hour: int = 0, cutoff_minute: int = 0,
                tz: Optional[ZoneInfo] = None) -> date:
    """
    Business date a timestamp belongs to.

    Args:
        timestamp: When the row was recorded (aware or shop-local naive)
        cutoff_hour: Hour the business day ends (0-23)
        cutoff_minute: Minute the business day ends (0-59)
        tz: Shop timezone, defaults to BUSINESS_TIMEZONE

    Returns:
        The business date
    """
    _validate_cutoff(cutoff_hour, cutoff_minute)
    local = to_local(timestamp, tz)
    cutoff = time(cutoff_hour, cutoff_minute)

    if cutoff == time(0, 0):
        return local.date()
    if local.time() >= cutoff:
        return local.date() + timedelta(days=1)
    return local.date()


def day_window(business_date: date, cutoff_hour: int = 0, cutoff_minute: int = 0,
               tz: Optional[ZoneInfo] = None) -> Tuple[datetime, datetime]:
    """
    Half-open [start, end) interval covered by a business date.

    `bucket_date(t) == business_date` holds exactly for `start <= t < end`.
    The bounds are aware datetimes in the shop timezone.
    """
    _validate_cutoff(cutoff_hour, cutoff_minute)
    zone = tz or business_timezone()
    cutoff = time(cutoff_hour, cutoff_minute)

    if cutoff == time(0, 0):
        end = datetime.combine(business_date + timedelta(days=1), cutoff, tzinfo=zone)
    else:
        end = datetime.combine(business_date, cutoff, tzinfo=zone)
    start = end - timedelta(days=1)
    return start, end

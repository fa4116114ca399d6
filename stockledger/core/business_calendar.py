"""Business-day arithmetic.

A business day runs from ``BUSINESS_DAY_START_HOUR`` (05:00) local time to
04:59:59.999 the next calendar morning. This module is the only place that
knows about that boundary; everything else asks it for dates and windows.
All stores share one civil timezone (``BUSINESS_TIMEZONE``).
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from stockledger.config import get_settings
from stockledger.core.dates import utc_now


def business_timezone() -> tzinfo:
    return ZoneInfo(get_settings().BUSINESS_TIMEZONE)


def _day_start_hour() -> int:
    hour = int(get_settings().BUSINESS_DAY_START_HOUR)
    if hour < 0 or hour > 23:
        raise ValueError("BUSINESS_DAY_START_HOUR must be between 0 and 23")
    return hour


def to_local(timestamp: datetime) -> datetime:
    """Express ``timestamp`` in the business timezone.

    Naive timestamps are taken to be local wall-clock time already.
    """
    tz = business_timezone()
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=tz)
    return timestamp.astimezone(tz)


def business_date_of(timestamp: datetime) -> date:
    local = to_local(timestamp)
    if local.hour < _day_start_hour():
        return local.date() - timedelta(days=1)
    return local.date()


def business_day_window(business_date: date) -> tuple[datetime, datetime]:
    start = datetime.combine(
        business_date,
        time(hour=_day_start_hour()),
        tzinfo=business_timezone(),
    )
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return start, end


def current_business_date(now: Optional[datetime] = None) -> date:
    return business_date_of(now if now is not None else utc_now())


def previous_business_date(business_date: date) -> date:
    return business_date - timedelta(days=1)


def iter_business_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def day_label(business_date: date) -> str:
    """``MMDD`` label used to name daily report sheets."""
    return business_date.strftime("%m%d")


__all__ = [
    "business_date_of",
    "business_day_window",
    "business_timezone",
    "current_business_date",
    "day_label",
    "iter_business_dates",
    "previous_business_date",
    "to_local",
]

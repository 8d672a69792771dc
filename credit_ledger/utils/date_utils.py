"""Date manipulation utilities"""

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from credit_ledger.config import settings


def business_now(tz_name: str | None = None) -> datetime:
    """Current wall-clock time in the business timezone, as a naive datetime"""
    tz = ZoneInfo(tz_name or settings.business_timezone)
    return datetime.now(tz).replace(tzinfo=None)


def business_today(tz_name: str | None = None) -> date:
    return business_now(tz_name).date()


def within_window(moment: datetime, start: time | None, end: time | None) -> bool:
    """True when moment falls inside [start, end]; an unset bound means no window"""
    if start is None or end is None:
        return True
    return start <= moment.time() <= end

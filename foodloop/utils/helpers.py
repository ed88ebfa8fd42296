"""
General helper utilities
"""
from datetime import datetime, timezone, date
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    return utcnow().date()


def minutes_until(moment: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole minutes from now until moment, floored at 0"""
    if moment is None:
        return 0
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    delta = moment - (now or utcnow())
    return max(int(delta.total_seconds() // 60), 0)

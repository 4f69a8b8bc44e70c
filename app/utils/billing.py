# app/utils/billing.py
"""
Pure billing arithmetic: no DB, no clock.

  duration = ceil((exit - entry) / 1 min)          minutes
  amount   = ceil(duration / 60) * price_per_hour  partial hours billed as full hours
"""

import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Union

from app.errors import InvalidExitTime

Number = Union[int, float, Decimal, str]

_ONE_MICROSECOND = timedelta(microseconds=1)
_MICROSECONDS_PER_MINUTE = 60 * 1000 * 1000


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC. Aware values are converted, naive ones trusted."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def calculate_duration(entry_time: datetime, exit_time: datetime) -> int:
    """Parked time in whole minutes, rounded up. Raises InvalidExitTime if exit precedes entry."""
    entry_time = to_naive_utc(entry_time)
    exit_time = to_naive_utc(exit_time)
    if exit_time < entry_time:
        raise InvalidExitTime(
            f"Exit time {exit_time.isoformat()} is before entry time {entry_time.isoformat()}"
        )
    elapsed = (exit_time - entry_time) // _ONE_MICROSECOND
    return -(-elapsed // _MICROSECONDS_PER_MINUTE)


def billable_hours(duration_minutes: int, minimum_hours: int = 0) -> int:
    if duration_minutes < 0:
        raise InvalidExitTime(f"Negative duration: {duration_minutes} min")
    return max(math.ceil(duration_minutes / 60), minimum_hours)


def calculate_amount(duration_minutes: int, price_per_hour: Number, minimum_hours: int = 0) -> Decimal:
    """
    Amount due for a stay. A zero-minute stay bills 0 unless minimum_hours says otherwise.
    Decimal throughout so the stored amount matches the tariff's precision.
    """
    price = price_per_hour if isinstance(price_per_hour, Decimal) else Decimal(str(price_per_hour))
    return billable_hours(duration_minutes, minimum_hours) * price


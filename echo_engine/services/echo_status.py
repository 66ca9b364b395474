"""Echo liveness classification derived from a profile's last photo refresh."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from enum import Enum

ACTIVE_DAYS = 7
WARNING_DAYS = 1

_ONE_DAY = timedelta(days=1)


class EchoStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRING = "EXPIRING"
    SILENCE = "SILENCE"


def _age_days(last_refreshed_at: datetime, now: datetime) -> float:
    return (now - last_refreshed_at) / _ONE_DAY


def status(last_refreshed_at: datetime, now: datetime) -> EchoStatus:
    age = _age_days(last_refreshed_at, now)
    if age < ACTIVE_DAYS - WARNING_DAYS:
        return EchoStatus.ACTIVE
    if age < ACTIVE_DAYS:
        return EchoStatus.EXPIRING
    return EchoStatus.SILENCE


def days_until_expiration(last_refreshed_at: datetime, now: datetime) -> int:
    remaining = (last_refreshed_at + timedelta(days=ACTIVE_DAYS) - now) / _ONE_DAY
    return max(0, math.ceil(remaining))


def is_discoverable(last_refreshed_at: datetime, now: datetime) -> bool:
    return status(last_refreshed_at, now) != EchoStatus.SILENCE


def echo_progress(last_refreshed_at: datetime, now: datetime) -> float:
    """Fraction of the Echo TTL still left, clamped to ``[0.0, 1.0]``."""

    remaining = ACTIVE_DAYS - _age_days(last_refreshed_at, now)
    return min(1.0, max(0.0, remaining / ACTIVE_DAYS))


__all__ = [
    "ACTIVE_DAYS",
    "WARNING_DAYS",
    "EchoStatus",
    "days_until_expiration",
    "echo_progress",
    "is_discoverable",
    "status",
]

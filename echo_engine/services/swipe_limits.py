"""Daily swipe and weekly super like quota tracking."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..models.swipe import SwipeLimits
from .exceptions import QuotaInvariantError

LOGGER = logging.getLogger("uvicorn.error")

# Free accounts cannot super like at all; the weekly quota below is kept at
# zero to match, but the policy is enforced through the flag.
FREE_TIER_SUPER_LIKES_ENABLED = False
FREE_WEEKLY_SUPER_QUOTA = 0


def _zone(tz_name: Optional[str]):
    if not tz_name or tz_name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(tz_name)


def next_midnight(now: datetime, tz_name: Optional[str] = None) -> datetime:
    """Return the first local midnight strictly after ``now``."""

    tz = _zone(tz_name)
    local = now.astimezone(tz)
    tomorrow = local.date() + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=tz).astimezone(timezone.utc)


def next_monday(now: datetime, tz_name: Optional[str] = None) -> datetime:
    """Return the first local Monday 00:00 strictly after ``now``."""

    tz = _zone(tz_name)
    local = now.astimezone(tz)
    days_ahead = 7 - local.weekday()
    monday = local.date() + timedelta(days=days_ahead)
    return datetime.combine(monday, time.min, tzinfo=tz).astimezone(timezone.utc)


def initial_limits(
    now: datetime,
    daily_quota: int,
    weekly_super_quota: int = FREE_WEEKLY_SUPER_QUOTA,
    tz_name: Optional[str] = None,
) -> SwipeLimits:
    return SwipeLimits(
        daily_quota=daily_quota,
        weekly_super_quota=weekly_super_quota,
        swipes_used=0,
        super_used=0,
        daily_reset_at=next_midnight(now, tz_name),
        weekly_reset_at=next_monday(now, tz_name),
    )


def apply_resets(limits: SwipeLimits, now: datetime, tz_name: Optional[str] = None) -> SwipeLimits:
    """Roll the daily and weekly windows forward independently."""

    updates: dict = {}
    if now >= limits.daily_reset_at:
        updates["swipes_used"] = 0
        updates["daily_reset_at"] = next_midnight(now, tz_name)
    if now >= limits.weekly_reset_at:
        updates["super_used"] = 0
        updates["weekly_reset_at"] = next_monday(now, tz_name)
    if not updates:
        return limits
    LOGGER.debug("Swipe limits reset: %s", sorted(updates))
    return limits.model_copy(update=updates)


def can_swipe(limits: SwipeLimits, is_unlimited: bool) -> bool:
    if is_unlimited:
        return True
    return limits.swipes_used < limits.daily_quota


def can_super_like(limits: SwipeLimits, is_unlimited_super: bool) -> bool:
    if is_unlimited_super:
        return True
    if not FREE_TIER_SUPER_LIKES_ENABLED:
        return False
    return limits.super_used < limits.weekly_super_quota


def consume_swipe(limits: SwipeLimits, is_unlimited: bool = False) -> SwipeLimits:
    if not can_swipe(limits, is_unlimited):
        raise QuotaInvariantError("daily swipe quota consumed without a passing can_swipe check")
    return limits.model_copy(update={"swipes_used": limits.swipes_used + 1})


def consume_super_like(limits: SwipeLimits, is_unlimited_super: bool = False) -> SwipeLimits:
    if not can_super_like(limits, is_unlimited_super):
        raise QuotaInvariantError("super like consumed without a passing can_super_like check")
    return limits.model_copy(update={"super_used": limits.super_used + 1})


class SwipeLimitTracker:
    """Binds the quota functions to a reset timezone.

    Every predicate applies pending resets first and returns the rolled
    limits alongside the answer, so callers never check a stale window.
    """

    def __init__(self, tz_name: Optional[str] = None) -> None:
        self._tz_name = tz_name

    def initial(self, now: datetime, daily_quota: int) -> SwipeLimits:
        return initial_limits(now, daily_quota, FREE_WEEKLY_SUPER_QUOTA, self._tz_name)

    def apply_resets(self, limits: SwipeLimits, now: datetime) -> SwipeLimits:
        return apply_resets(limits, now, self._tz_name)

    def can_swipe(self, limits: SwipeLimits, is_unlimited: bool, now: datetime) -> tuple[bool, SwipeLimits]:
        current = self.apply_resets(limits, now)
        return can_swipe(current, is_unlimited), current

    def can_super_like(
        self, limits: SwipeLimits, is_unlimited_super: bool, now: datetime
    ) -> tuple[bool, SwipeLimits]:
        current = self.apply_resets(limits, now)
        return can_super_like(current, is_unlimited_super), current

    consume_swipe = staticmethod(consume_swipe)
    consume_super_like = staticmethod(consume_super_like)


__all__ = [
    "FREE_TIER_SUPER_LIKES_ENABLED",
    "FREE_WEEKLY_SUPER_QUOTA",
    "SwipeLimitTracker",
    "apply_resets",
    "can_super_like",
    "can_swipe",
    "consume_super_like",
    "consume_swipe",
    "initial_limits",
    "next_midnight",
    "next_monday",
]

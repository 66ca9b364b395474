from __future__ import annotations

import logging
from datetime import datetime

from ..models.entitlement import Entitlement
from ..models.session import SwipeResult, SwipeSessionState
from ..models.swipe import SwipeAction, SwipeHistoryEntry, SwipeOutcome, SwipeStats
from .match_policy import MatchDecisionPolicy
from .match_service import MatchLifecycleManager
from .swipe_limits import SwipeLimitTracker

LOGGER = logging.getLogger("uvicorn.error")

HISTORY_LIMIT = 100


def append_history(
    history: tuple[SwipeHistoryEntry, ...],
    entry: SwipeHistoryEntry,
    limit: int = HISTORY_LIMIT,
) -> tuple[SwipeHistoryEntry, ...]:
    """Append to the ring buffer, keeping only the newest ``limit`` entries."""

    combined = history + (entry,)
    if len(combined) > limit:
        combined = combined[-limit:]
    return combined


def bump_stats(stats: SwipeStats, action: SwipeAction, matched: bool) -> SwipeStats:
    return stats.model_copy(
        update={
            "total_swipes": stats.total_swipes + 1,
            "total_likes": stats.total_likes + (action == SwipeAction.LIKE),
            "total_super_likes": stats.total_super_likes + (action == SwipeAction.SUPERLIKE),
            "total_matches": stats.total_matches + matched,
        }
    )


class SwipeDecisionProcessor:
    """Applies one swipe to the candidate queue.

    Swipes on a single queue must be submitted one at a time; the processor
    itself holds no state and returns a fresh :class:`SwipeSessionState`.
    """

    def __init__(
        self,
        policy: MatchDecisionPolicy,
        lifecycle: MatchLifecycleManager,
        tracker: SwipeLimitTracker,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self._policy = policy
        self._lifecycle = lifecycle
        self._tracker = tracker
        self._history_limit = history_limit

    def swipe(
        self,
        state: SwipeSessionState,
        action: SwipeAction,
        entitlement: Entitlement,
        now: datetime,
    ) -> SwipeResult:
        candidate = state.current_candidate
        if candidate is None:
            return SwipeResult(outcome=SwipeOutcome.NO_CANDIDATE, state=state)

        if action == SwipeAction.SUPERLIKE:
            allowed, limits = self._tracker.can_super_like(
                state.limits, entitlement.unlimited_super_likes, now
            )
            reset_at = limits.weekly_reset_at
            used, quota = limits.super_used, limits.weekly_super_quota
        else:
            allowed, limits = self._tracker.can_swipe(state.limits, entitlement.unlimited_swipes, now)
            reset_at = limits.daily_reset_at
            used, quota = limits.swipes_used, limits.daily_quota

        if not allowed:
            LOGGER.debug(
                "Swipe blocked: user=%s action=%s used=%s/%s",
                state.user_id,
                action.value,
                used,
                quota,
            )
            # Rejections leave cursor and history untouched; rolled-forward
            # limits are returned so the prompt shows the right reset time.
            return SwipeResult(
                outcome=SwipeOutcome.BLOCKED,
                state=state.model_copy(update={"limits": limits}),
                candidate=candidate,
                reset_at=reset_at,
            )

        if action == SwipeAction.SUPERLIKE:
            limits = self._tracker.consume_super_like(limits, entitlement.unlimited_super_likes)
        else:
            limits = self._tracker.consume_swipe(limits, entitlement.unlimited_swipes)

        entry = SwipeHistoryEntry(candidate_id=candidate.id, action=action, timestamp=now)
        updates = {
            "limits": limits,
            "history": append_history(state.history, entry, self._history_limit),
            "current_index": state.current_index + 1,
        }

        match = None
        if self._policy.decide(candidate, action):
            match = self._lifecycle.create_match(
                candidate.id,
                is_super_like=action == SwipeAction.SUPERLIKE,
                now=now,
            )
            updates["matches"] = self._lifecycle.add_match(state.matches, match)

        updates["stats"] = bump_stats(state.stats, action, matched=match is not None)
        return SwipeResult(
            outcome=SwipeOutcome.ACCEPTED,
            state=state.model_copy(update=updates),
            candidate=candidate,
            match=match,
        )


__all__ = ["HISTORY_LIMIT", "SwipeDecisionProcessor", "append_history", "bump_stats"]

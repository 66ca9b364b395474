"""Per-user orchestration of the swipe, match and resonance engines.

Each operation loads the user's state, runs the pure transition, and writes
the new state back before returning (write-through).
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from datetime import datetime
from typing import Callable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..config import Settings, get_settings
from ..db import get_db
from ..models.entitlement import FREE_ENTITLEMENT, Entitlement
from ..models.location import CheckInOutcome, CheckInResult, Coordinates
from ..models.match import Match, MatchListResponse, MatchView
from ..models.profile import DiscoveryFilters
from ..models.session import RewindResult, SwipeResult, SwipeSessionState
from ..models.swipe import SwipeAction, SwipeLimits, SwipeStats
from ..models.types import utc_now
from ..repositories.discovery import DiscoveryFeed, MongoDiscoveryFeed
from ..repositories.session_state import SessionStateRepository
from .exceptions import MatchExpiredError, MatchNotFoundError
from .geolocation import GeolocationProvider
from .likes_service import record_like
from .match_policy import LocalRandomPolicy, MatchDecisionPolicy, load_reciprocity_policy
from .match_service import MatchLifecycleManager
from .resonance_service import ResonanceProximityEngine
from .swipe_limits import SwipeLimitTracker
from .swipe_service import SwipeDecisionProcessor

LOGGER = logging.getLogger("uvicorn.error")

# users hash onto a fixed pool of locks, so the pool never grows
LOCK_STRIPES = 256
# resonance engines kept in memory, least recently used evicted first
RESONANCE_ENGINE_LIMIT = 1024


class EchoEngineService:
    """Entry point the HTTP layer talks to.

    Operations for one user are serialised through a striped lock pool; there
    is exactly one writer per user session. Resonance engines hold only
    transient check-in state and are bounded by an LRU, so an evicted user
    simply starts from ``prompt`` again.
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        settings: Optional[Settings] = None,
        *,
        feed: Optional[DiscoveryFeed] = None,
        policy: Optional[MatchDecisionPolicy] = None,
        clock: Callable[[], datetime] = utc_now,
        resonance_engine_limit: int = RESONANCE_ENGINE_LIMIT,
    ) -> None:
        self._database = database
        self._settings = settings or get_settings()
        self._repo = SessionStateRepository(database)
        self._feed = feed or MongoDiscoveryFeed(database)
        self._policy = policy
        self._clock = clock

        self._lifecycle = MatchLifecycleManager(self._settings.match_ttl_hours)
        self._tracker = SwipeLimitTracker(self._settings.reset_timezone)
        self._locks: List[asyncio.Lock] = [asyncio.Lock() for _ in range(LOCK_STRIPES)]
        self._resonance: "OrderedDict[str, ResonanceProximityEngine]" = OrderedDict()
        self._resonance_limit = max(1, resonance_engine_limit)

    @property
    def repository(self) -> SessionStateRepository:
        return self._repo

    @property
    def lifecycle(self) -> MatchLifecycleManager:
        return self._lifecycle

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        return self._locks[hash(user_id) % len(self._locks)]

    async def _policy_for(self, user_id: str) -> MatchDecisionPolicy:
        if self._policy is not None:
            return self._policy
        if self._settings.match_policy == "reciprocity":
            return await load_reciprocity_policy(self._database, user_id)
        return LocalRandomPolicy(
            like_chance=self._settings.like_match_chance,
            superlike_chance=self._settings.superlike_match_chance,
        )

    async def get_entitlement(self, user_id: str) -> Entitlement:
        return await self._repo.get_entitlement(user_id) or FREE_ENTITLEMENT

    async def _load_limits(self, user_id: str, now: datetime) -> SwipeLimits:
        limits = await self._repo.get_limits(user_id)
        if limits is None:
            limits = self._tracker.initial(now, self._settings.free_daily_swipes)
            await self._repo.save_limits(user_id, limits)
            LOGGER.info("Swipe limits created: user=%s daily_quota=%s", user_id, limits.daily_quota)
        return limits

    async def load_state(self, user_id: str, now: Optional[datetime] = None) -> SwipeSessionState:
        now = now or self._clock()
        limits = await self._load_limits(user_id, now)
        queue, current_index = await self._repo.get_queue(user_id)
        return SwipeSessionState(
            user_id=user_id,
            queue=queue,
            current_index=min(current_index, len(queue)),
            limits=limits,
            history=await self._repo.get_history(user_id),
            matches=await self._repo.get_matches(user_id),
            stats=await self._repo.get_stats(user_id),
        )

    async def current_limits(self, user_id: str) -> SwipeLimits:
        async with self._lock_for(user_id):
            now = self._clock()
            limits = await self._load_limits(user_id, now)
            rolled = self._tracker.apply_resets(limits, now)
            if rolled != limits:
                await self._repo.save_limits(user_id, rolled)
            return rolled

    async def refresh_queue(
        self,
        user_id: str,
        filters: DiscoveryFilters,
        viewer_location: Optional[Coordinates] = None,
    ) -> SwipeSessionState:
        """Replace the candidate queue with a fresh page and rewind the cursor to 0."""

        profiles = await self._feed.fetch_page(user_id, filters, viewer_location)
        async with self._lock_for(user_id):
            await self._repo.save_queue(user_id, profiles, 0)
            LOGGER.info("Discovery queue loaded: user=%s size=%s", user_id, len(profiles))
            return await self.load_state(user_id)

    async def swipe(self, user_id: str, action: SwipeAction) -> SwipeResult:
        policy = await self._policy_for(user_id)
        async with self._lock_for(user_id):
            now = self._clock()
            state = await self.load_state(user_id, now)
            entitlement = await self.get_entitlement(user_id)
            processor = SwipeDecisionProcessor(
                policy,
                self._lifecycle,
                self._tracker,
                history_limit=self._settings.history_limit,
            )
            result = processor.swipe(state, action, entitlement, now)

            new_state = result.state
            if new_state.limits != state.limits:
                await self._repo.save_limits(user_id, new_state.limits)
            if not result.accepted:
                return result

            await self._repo.save_history(user_id, new_state.history)
            await self._repo.save_cursor(user_id, new_state.current_index)
            await self._repo.save_stats(user_id, new_state.stats)
            if result.match is not None:
                await self._repo.save_matches(user_id, new_state.matches)

        if result.candidate is not None and action != SwipeAction.NOPE:
            await record_like(self._database, user_id, result.candidate.id, action)
        return result

    async def rewind(self, user_id: str) -> RewindResult:
        async with self._lock_for(user_id):
            state = await self.load_state(user_id)
            entitlement = await self.get_entitlement(user_id)
            result = self._lifecycle.rewind(state, entitlement.is_premium)
            if result.accepted:
                await self._repo.save_history(user_id, result.state.history)
                await self._repo.save_cursor(user_id, result.state.current_index)
            return result

    async def list_matches(self, user_id: str) -> MatchListResponse:
        now = self._clock()
        matches = await self._repo.get_matches(user_id)
        buckets = self._lifecycle.partition(matches, now)
        return MatchListResponse(
            **{
                bucket.value: [
                    MatchView(
                        match=m,
                        bucket=bucket,
                        hours_remaining=self._lifecycle.hours_remaining(m, now),
                    )
                    for m in items
                ]
                for bucket, items in buckets.items()
            }
        )

    async def _require_match(self, user_id: str, match_id: str) -> Match:
        match = self._lifecycle.find_match(await self._repo.get_matches(user_id), match_id)
        if match is None:
            raise MatchNotFoundError(f"match {match_id} not found")
        return match

    async def record_message(self, user_id: str, match_id: str) -> Match:
        async with self._lock_for(user_id):
            now = self._clock()
            matches = await self._repo.get_matches(user_id)
            match = self._lifecycle.find_match(matches, match_id)
            if match is None:
                raise MatchNotFoundError(f"match {match_id} not found")
            if self._lifecycle.is_expired(match, now):
                raise MatchExpiredError(f"match {match_id} expired at {match.expires_at.isoformat()}")
            updated = self._lifecycle.record_message(match, now)
            await self._repo.save_matches(
                user_id, tuple(updated if m.id == match_id else m for m in matches)
            )
            return updated

    async def get_stats(self, user_id: str) -> SwipeStats:
        return await self._repo.get_stats(user_id)

    async def resonance_engine(
        self, user_id: str, geolocation: GeolocationProvider
    ) -> ResonanceProximityEngine:
        engine = self._resonance.get(user_id)
        if engine is None:
            engine = self._resonance[user_id] = ResonanceProximityEngine(
                geolocation,
                self._lifecycle,
                permission_timeout=self._settings.geo_permission_timeout_s,
                permission_max_age=self._settings.geo_permission_max_age_s,
                checkin_timeout=self._settings.geo_checkin_timeout_s,
            )
            while len(self._resonance) > self._resonance_limit:
                evicted, _ = self._resonance.popitem(last=False)
                LOGGER.debug("Resonance engine evicted: user=%s", evicted)
        else:
            self._resonance.move_to_end(user_id)
            await engine.use_geolocation(geolocation)
        return engine

    async def check_in(
        self,
        user_id: str,
        match_id: str,
        geolocation: GeolocationProvider,
        counterparty_location: Optional[Coordinates],
        self_location: Optional[Coordinates] = None,
    ) -> CheckInResult:
        """Run a check-in; expired matches resolve as ``expired`` without a location fetch."""

        match = await self._require_match(user_id, match_id)
        engine = await self.resonance_engine(user_id, geolocation)
        now = self._clock()
        attempt = await engine.perform_check_in(match, counterparty_location, self_location, now=now)
        if attempt.result.outcome != CheckInOutcome.SUCCESS or attempt.match is None:
            return attempt.result

        async with self._lock_for(user_id):
            matches = await self._repo.get_matches(user_id)
            promoted = self._lifecycle.promote_in(matches, match_id, attempt.match.resonance_at or now)
            await self._repo.save_matches(user_id, promoted)
        return attempt.result


def get_engine_service() -> EchoEngineService:
    global _service
    if _service is None:
        _service = EchoEngineService(get_db())
    return _service


def reset_engine_service() -> None:
    global _service
    _service = None


_service: Optional[EchoEngineService] = None


__all__ = ["EchoEngineService", "get_engine_service", "reset_engine_service"]

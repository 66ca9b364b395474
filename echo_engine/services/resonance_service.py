"""Proximity check-in that upgrades a match to the permanent resonance state."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..cache import TTLCache
from ..models.location import (
    CheckInOutcome,
    CheckInResult,
    CheckInState,
    Coordinates,
    LiveLocation,
    PermissionState,
)
from ..models.match import Match
from ..models.types import utc_now
from .geolocation import GeolocationError, GeolocationProvider, PermissionDeniedError
from .match_service import MatchLifecycleManager

LOGGER = logging.getLogger("uvicorn.error")

EARTH_RADIUS_KM = 6371.0
RESONANCE_RANGE_KM = 0.2

PERMISSION_TIMEOUT_S = 10.0
PERMISSION_MAX_AGE_S = 60.0
CHECKIN_TIMEOUT_S = 5.0

_POSITION_CACHE_KEY = "position"


def _haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    sin_dphi = math.sin(dphi / 2.0)
    sin_dlambda = math.sin(dlambda / 2.0)
    a = sin_dphi * sin_dphi + math.cos(phi1) * math.cos(phi2) * sin_dlambda * sin_dlambda
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))
    return EARTH_RADIUS_KM * c


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres, rounded to two decimals."""

    return round(_haversine_km(lat1, lon1, lat2, lon2), 2)


def within_resonance_range(a: Coordinates, b: Coordinates) -> bool:
    # compared on the rounded value shown to the user
    return distance_km(a.latitude, a.longitude, b.latitude, b.longitude) <= RESONANCE_RANGE_KM


@dataclass(frozen=True)
class CheckInAttempt:
    result: CheckInResult
    # set only when this attempt promoted the match
    match: Optional[Match] = None


class ResonanceProximityEngine:
    """Drives the ``idle -> checking -> success | too_far`` check-in machine.

    One engine instance serves one user session. Only the most recent
    attempt may apply its result; older in-flight attempts resolve as
    ``superseded`` and leave the state untouched.
    """

    def __init__(
        self,
        geolocation: GeolocationProvider,
        lifecycle: MatchLifecycleManager,
        *,
        permission_timeout: float = PERMISSION_TIMEOUT_S,
        permission_max_age: float = PERMISSION_MAX_AGE_S,
        checkin_timeout: float = CHECKIN_TIMEOUT_S,
        position_cache: Optional[TTLCache] = None,
    ) -> None:
        self._geolocation = geolocation
        self._lifecycle = lifecycle
        self._permission_timeout = permission_timeout
        self._permission_max_age = permission_max_age
        self._checkin_timeout = checkin_timeout
        self._cache = position_cache or TTLCache()

        self._state = CheckInState.IDLE
        self._permission = PermissionState.PROMPT
        self._attempt_seq = 0
        self._active: Optional[tuple[str, int]] = None
        self._last_distance_km: Optional[float] = None

    @property
    def state(self) -> CheckInState:
        return self._state

    @property
    def permission(self) -> PermissionState:
        return self._permission

    @property
    def last_distance_km(self) -> Optional[float]:
        return self._last_distance_km

    async def use_geolocation(self, geolocation: GeolocationProvider) -> None:
        """Swap in a new collaborator, e.g. a fix the user just shared again.

        Supplying a new source after a refusal counts as an explicit retry:
        the ``denied`` answer is forgotten and cached positions are dropped.
        Otherwise the cached permission fix is kept for its 60s window.
        """

        self._geolocation = geolocation
        if self._permission == PermissionState.DENIED:
            self._permission = PermissionState.PROMPT
            await self._cache.clear()

    async def request_permission(self) -> PermissionState:
        """Ask for location access once; a granted answer primes the position cache."""

        if self._permission != PermissionState.PROMPT:
            return self._permission
        try:
            permission = await asyncio.wait_for(
                self._geolocation.request_permission(), timeout=self._permission_timeout
            )
        except asyncio.TimeoutError:
            LOGGER.warning("Geolocation permission request timed out")
            return self._permission

        self._permission = permission
        if permission == PermissionState.GRANTED:
            await self._fetch_position(timeout=self._permission_timeout, max_age=self._permission_max_age)
        return self._permission

    async def _fetch_position(self, *, timeout: float, max_age: float) -> Optional[LiveLocation]:
        cached = await self._cache.get(_POSITION_CACHE_KEY, max_age)
        if cached is not None:
            LOGGER.debug("Using cached position")
            return cached
        try:
            location = await asyncio.wait_for(
                self._geolocation.get_current_position(
                    high_accuracy=True, timeout=timeout, max_age=max_age
                ),
                timeout=timeout,
            )
        except PermissionDeniedError:
            self._permission = PermissionState.DENIED
            LOGGER.warning("Geolocation permission denied")
            return None
        except asyncio.TimeoutError:
            LOGGER.warning("Geolocation fetch timed out after %ss", timeout)
            return None
        except GeolocationError as exc:
            LOGGER.warning("Geolocation unavailable: %s", exc)
            return None

        if location is not None:
            self._permission = PermissionState.GRANTED
            await self._cache.set(_POSITION_CACHE_KEY, location)
        return location

    def _is_current(self, token: tuple[str, int]) -> bool:
        return self._active == token

    def _finish(self, token: tuple[str, int], outcome: CheckInOutcome, distance: Optional[float]) -> CheckInResult:
        match_id = token[0]
        if not self._is_current(token):
            LOGGER.info("Discarding superseded check-in for match=%s", match_id)
            return CheckInResult(
                match_id=match_id,
                outcome=CheckInOutcome.SUPERSEDED,
                state=self._state,
                distance_km=distance,
                permission=self._permission,
            )

        self._state = {
            CheckInOutcome.SUCCESS: CheckInState.SUCCESS,
            CheckInOutcome.TOO_FAR: CheckInState.TOO_FAR,
        }.get(outcome, CheckInState.IDLE)
        self._active = None
        if distance is not None:
            self._last_distance_km = distance
        return CheckInResult(
            match_id=match_id,
            outcome=outcome,
            state=self._state,
            distance_km=distance,
            permission=self._permission,
        )

    async def perform_check_in(
        self,
        match: Match,
        counterparty_location: Optional[Coordinates],
        self_location: Optional[Coordinates] = None,
        now: Optional[datetime] = None,
    ) -> CheckInAttempt:
        """Compare live positions and promote ``match`` when both are within range.

        ``self_location`` is the last known fix; a fresh position from the
        collaborator replaces it whenever one can be obtained.
        """

        now = now or utc_now()
        if self._lifecycle.is_expired(match, now):
            LOGGER.info("Check-in refused for expired match=%s", match.id)
            return CheckInAttempt(
                CheckInResult(
                    match_id=match.id,
                    outcome=CheckInOutcome.EXPIRED,
                    state=self._state,
                    permission=self._permission,
                )
            )

        self._attempt_seq += 1
        token = (match.id, self._attempt_seq)
        self._active = token
        self._state = CheckInState.CHECKING

        try:
            if self._permission == PermissionState.DENIED:
                return CheckInAttempt(self._finish(token, CheckInOutcome.UNAVAILABLE, None))

            if self._permission == PermissionState.PROMPT:
                await self.request_permission()
                if self._permission == PermissionState.DENIED:
                    return CheckInAttempt(self._finish(token, CheckInOutcome.UNAVAILABLE, None))

            fresh = await self._fetch_position(timeout=self._checkin_timeout, max_age=0)
            own: Optional[Coordinates] = fresh if fresh is not None else self_location
            if self._permission == PermissionState.DENIED:
                own = None

            if own is None or counterparty_location is None:
                return CheckInAttempt(self._finish(token, CheckInOutcome.UNAVAILABLE, None))

            measured = distance_km(
                own.latitude,
                own.longitude,
                counterparty_location.latitude,
                counterparty_location.longitude,
            )
            if not within_resonance_range(own, counterparty_location):
                return CheckInAttempt(self._finish(token, CheckInOutcome.TOO_FAR, measured))

            result = self._finish(token, CheckInOutcome.SUCCESS, measured)
            if result.outcome != CheckInOutcome.SUCCESS:
                return CheckInAttempt(result)
            promoted = self._lifecycle.promote_to_resonance(match, now)
            return CheckInAttempt(result, promoted)
        finally:
            # never leave the machine parked in ``checking``
            if self._is_current(token):
                self._state = CheckInState.IDLE
                self._active = None


__all__ = [
    "CHECKIN_TIMEOUT_S",
    "EARTH_RADIUS_KM",
    "PERMISSION_MAX_AGE_S",
    "PERMISSION_TIMEOUT_S",
    "RESONANCE_RANGE_KM",
    "CheckInAttempt",
    "ResonanceProximityEngine",
    "distance_km",
    "within_resonance_range",
]

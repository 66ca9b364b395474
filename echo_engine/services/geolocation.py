"""Contract for the device geolocation collaborator."""

from __future__ import annotations

from typing import Optional, Protocol

from ..models.location import Coordinates, LiveLocation, PermissionState
from ..models.types import utc_now


class GeolocationError(RuntimeError):
    """Raised by providers when a position cannot be obtained."""


class PermissionDeniedError(GeolocationError):
    """Raised by providers when the user refused location access."""


class GeolocationProvider(Protocol):
    async def request_permission(self) -> PermissionState:
        ...

    async def get_current_position(
        self,
        *,
        high_accuracy: bool = True,
        timeout: float,
        max_age: float,
    ) -> Optional[LiveLocation]:
        ...


class StaticGeolocation:
    """Provider that replays a fix the client already captured on device."""

    def __init__(
        self,
        location: Optional[Coordinates],
        permission: PermissionState = PermissionState.GRANTED,
        accuracy: float = 0.0,
    ) -> None:
        self._location = location
        self._permission = permission
        self._accuracy = accuracy

    async def request_permission(self) -> PermissionState:
        return self._permission

    async def get_current_position(
        self,
        *,
        high_accuracy: bool = True,
        timeout: float,
        max_age: float,
    ) -> Optional[LiveLocation]:
        if self._permission == PermissionState.DENIED:
            raise PermissionDeniedError("location permission denied")
        if self._location is None:
            return None
        return LiveLocation(
            latitude=self._location.latitude,
            longitude=self._location.longitude,
            accuracy=self._accuracy,
            timestamp=utc_now(),
        )


__all__ = [
    "GeolocationError",
    "GeolocationProvider",
    "PermissionDeniedError",
    "StaticGeolocation",
]

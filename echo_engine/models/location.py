from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .types import UtcDateTime


class PermissionState(str, Enum):
    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"


class CheckInState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    SUCCESS = "success"
    TOO_FAR = "too_far"


class CheckInOutcome(str, Enum):
    SUCCESS = "success"
    TOO_FAR = "too_far"
    UNAVAILABLE = "unavailable"
    # the match countdown ran out before the check-in started
    EXPIRED = "expired"
    # a newer check-in for another match started while this one was in flight
    SUPERSEDED = "superseded"


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class LiveLocation(Coordinates):
    """A device position fix. Only lives for the duration of one check-in."""

    accuracy: float = Field(default=0.0, ge=0.0)
    timestamp: UtcDateTime


class CheckInResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_id: str = Field(alias="matchId")
    outcome: CheckInOutcome
    state: CheckInState
    distance_km: Optional[float] = Field(default=None, alias="distanceKm")
    permission: PermissionState


class CheckInRequest(BaseModel):
    """Coordinates submitted by the client for a resonance check-in."""

    model_config = ConfigDict(populate_by_name=True)

    self_location: Optional[Coordinates] = Field(default=None, alias="selfLocation")
    counterparty_location: Optional[Coordinates] = Field(default=None, alias="counterpartyLocation")
    accuracy: float = Field(default=0.0, ge=0.0)
    permission: PermissionState = PermissionState.GRANTED


__all__ = [
    "CheckInOutcome",
    "CheckInRequest",
    "CheckInResult",
    "CheckInState",
    "Coordinates",
    "LiveLocation",
    "PermissionState",
]

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .location import Coordinates
from .types import UtcDateTime


class DiscoveryProfile(BaseModel):
    """A discovery candidate as served by the feed. Never mutated by the engine."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="profileId", min_length=1)
    first_name: str = Field(alias="firstName")
    age: int = Field(ge=18)
    bio: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    distance_km: Optional[float] = Field(default=None, alias="distanceKm")
    is_verified: bool = Field(default=False, alias="isValidated")
    last_refreshed_at: UtcDateTime = Field(alias="lastPhotoAt")
    wingman_quote: Optional[str] = Field(default=None, alias="wingmanQuote")


class DiscoveryFilters(BaseModel):
    """Filter parameters accepted by the discovery feed provider."""

    model_config = ConfigDict(populate_by_name=True)

    min_age: Optional[int] = Field(default=None, alias="minAge", ge=18)
    max_age: Optional[int] = Field(default=None, alias="maxAge", ge=18)
    max_distance_km: Optional[float] = Field(default=None, alias="maxDistanceKm", gt=0)
    verified_only: bool = Field(default=False, alias="verifiedOnly")
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class QueueRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filters: DiscoveryFilters = Field(default_factory=DiscoveryFilters)
    viewer_location: Optional[Coordinates] = Field(default=None, alias="viewerLocation")


class QueueResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profiles: List[DiscoveryProfile] = Field(default_factory=list)
    current_index: int = Field(alias="currentIndex")


class EchoStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    last_refreshed_at: UtcDateTime = Field(alias="lastPhotoAt")


class EchoStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    days_until_expiration: int = Field(alias="daysUntilExpiration")
    is_discoverable: bool = Field(alias="isDiscoverable")
    progress: float


__all__ = [
    "DiscoveryFilters",
    "DiscoveryProfile",
    "EchoStatusRequest",
    "EchoStatusResponse",
    "QueueRequest",
    "QueueResponse",
]

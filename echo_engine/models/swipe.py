from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .types import UtcDateTime


class SwipeAction(str, Enum):
    LIKE = "like"
    NOPE = "nope"
    SUPERLIKE = "superlike"


class SwipeOutcome(str, Enum):
    ACCEPTED = "accepted"
    BLOCKED = "blocked"
    NO_CANDIDATE = "no_candidate"


class SwipeLimits(BaseModel):
    """Quota counters for the daily swipe and weekly super like allowances."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    daily_quota: int = Field(alias="dailyQuota", ge=0)
    weekly_super_quota: int = Field(alias="weeklySuperQuota", ge=0)
    swipes_used: int = Field(default=0, alias="swipesUsed", ge=0)
    super_used: int = Field(default=0, alias="superUsed", ge=0)
    daily_reset_at: UtcDateTime = Field(alias="dailyResetAt")
    weekly_reset_at: UtcDateTime = Field(alias="weeklyResetAt")


class SwipeStats(BaseModel):
    """Lifetime swipe counters. Rewinds do not roll them back."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    total_swipes: int = Field(default=0, alias="totalSwipes", ge=0)
    total_likes: int = Field(default=0, alias="totalLikes", ge=0)
    total_super_likes: int = Field(default=0, alias="totalSuperLikes", ge=0)
    total_matches: int = Field(default=0, alias="totalMatches", ge=0)


class SwipeHistoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    candidate_id: str = Field(alias="candidateId")
    action: SwipeAction
    timestamp: UtcDateTime


class SwipeRequest(BaseModel):
    """Payload for submitting one swipe against the current candidate."""

    action: SwipeAction


class SwipeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    outcome: SwipeOutcome
    candidate_id: Optional[str] = Field(default=None, alias="candidateId")
    current_index: int = Field(alias="currentIndex")
    swipes_used: int = Field(alias="swipesUsed")
    super_used: int = Field(alias="superUsed")
    reset_at: Optional[UtcDateTime] = Field(default=None, alias="resetAt")
    match_id: Optional[str] = Field(default=None, alias="matchId")
    is_match: bool = Field(default=False, alias="isMatch")


class LimitsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    limits: SwipeLimits
    can_swipe: bool = Field(alias="canSwipe")
    can_super_like: bool = Field(alias="canSuperLike")


class RewindResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rewound: bool
    current_index: int = Field(alias="currentIndex")
    candidate_id: Optional[str] = Field(default=None, alias="candidateId")


__all__ = [
    "LimitsResponse",
    "RewindResponse",
    "SwipeAction",
    "SwipeHistoryEntry",
    "SwipeLimits",
    "SwipeOutcome",
    "SwipeRequest",
    "SwipeResponse",
    "SwipeStats",
]

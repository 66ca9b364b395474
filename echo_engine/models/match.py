from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .types import UtcDateTime


class MatchStatus(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    EXPIRED = "expired"
    RESONANCE = "resonance"


class MatchBucket(str, Enum):
    """Read-only projection used to partition matches for display."""

    ACTIVE = "active"
    RESONANCE = "resonance"
    EXPIRED = "expired"


class Match(BaseModel):
    """A match and its countdown. ``expires_at`` is fixed at creation."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="matchId")
    counterparty_id: str = Field(alias="counterpartyId")
    created_at: UtcDateTime = Field(alias="createdAt")
    expires_at: UtcDateTime = Field(alias="expiresAt")
    status: MatchStatus = MatchStatus.MATCHED
    is_super_like: bool = Field(default=False, alias="isSuperLike")
    last_message_at: Optional[UtcDateTime] = Field(default=None, alias="lastMessageAt")
    resonance_at: Optional[UtcDateTime] = Field(default=None, alias="resonanceAt")


class MatchView(BaseModel):
    """Match enriched with the values the countdown UI renders."""

    model_config = ConfigDict(populate_by_name=True)

    match: Match
    bucket: MatchBucket
    hours_remaining: Optional[float] = Field(default=None, alias="hoursRemaining")


class MatchListResponse(BaseModel):
    active: List[MatchView] = Field(default_factory=list)
    resonance: List[MatchView] = Field(default_factory=list)
    expired: List[MatchView] = Field(default_factory=list)


__all__ = [
    "Match",
    "MatchBucket",
    "MatchListResponse",
    "MatchStatus",
    "MatchView",
]

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .match import Match
from .profile import DiscoveryProfile
from .swipe import SwipeHistoryEntry, SwipeLimits, SwipeOutcome, SwipeStats
from .types import UtcDateTime


class SwipeSessionState(BaseModel):
    """Everything the swipe engine reads and writes for one user.

    Instances are immutable; every engine operation returns a new state.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(alias="userId")
    queue: Tuple[DiscoveryProfile, ...] = ()
    current_index: int = Field(default=0, alias="currentIndex", ge=0)
    limits: SwipeLimits
    history: Tuple[SwipeHistoryEntry, ...] = ()
    matches: Tuple[Match, ...] = ()
    stats: SwipeStats = Field(default_factory=SwipeStats)

    @property
    def current_candidate(self) -> Optional[DiscoveryProfile]:
        if self.current_index >= len(self.queue):
            return None
        return self.queue[self.current_index]


class SwipeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: SwipeOutcome
    state: SwipeSessionState
    candidate: Optional[DiscoveryProfile] = None
    match: Optional[Match] = None
    # next reset boundary of the quota that blocked the swipe
    reset_at: Optional[UtcDateTime] = None

    @property
    def accepted(self) -> bool:
        return self.outcome == SwipeOutcome.ACCEPTED


class RewindResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    accepted: bool
    state: SwipeSessionState
    undone: Optional[SwipeHistoryEntry] = None


__all__ = ["RewindResult", "SwipeResult", "SwipeSessionState"]

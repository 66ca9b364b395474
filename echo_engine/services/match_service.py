"""Match countdown, resonance promotion and swipe rewind."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.match import Match, MatchBucket, MatchStatus
from ..models.session import RewindResult, SwipeSessionState
from .exceptions import MatchNotFoundError

LOGGER = logging.getLogger("uvicorn.error")

MATCH_TTL_HOURS = 48


class MatchLifecycleManager:
    """Owns match creation and every status transition a match can take."""

    def __init__(self, ttl_hours: int = MATCH_TTL_HOURS) -> None:
        self._ttl = timedelta(hours=ttl_hours)

    def create_match(self, counterparty_id: str, is_super_like: bool, now: datetime) -> Match:
        match = Match(
            id=str(uuid.uuid4()),
            counterparty_id=counterparty_id,
            created_at=now,
            expires_at=now + self._ttl,
            status=MatchStatus.MATCHED,
            is_super_like=is_super_like,
        )
        LOGGER.info(
            "Match created: id=%s counterparty=%s super_like=%s",
            match.id,
            counterparty_id,
            is_super_like,
        )
        return match

    @staticmethod
    def add_match(matches: Tuple[Match, ...], match: Match) -> Tuple[Match, ...]:
        return (match,) + tuple(matches)

    @staticmethod
    def find_match(matches: Iterable[Match], match_id: str) -> Optional[Match]:
        return next((m for m in matches if m.id == match_id), None)

    @staticmethod
    def is_expired(match: Match, now: datetime) -> bool:
        return now >= match.expires_at and match.status != MatchStatus.RESONANCE

    def classify(self, match: Match, now: datetime) -> MatchBucket:
        if match.status == MatchStatus.RESONANCE:
            return MatchBucket.RESONANCE
        if self.is_expired(match, now) or match.status == MatchStatus.EXPIRED:
            return MatchBucket.EXPIRED
        return MatchBucket.ACTIVE

    def partition(self, matches: Iterable[Match], now: datetime) -> Dict[MatchBucket, List[Match]]:
        """Split matches into display buckets. Expired matches are kept, not dropped."""

        buckets: Dict[MatchBucket, List[Match]] = {bucket: [] for bucket in MatchBucket}
        for match in matches:
            buckets[self.classify(match, now)].append(match)
        return buckets

    @staticmethod
    def hours_remaining(match: Match, now: datetime) -> Optional[float]:
        """Countdown value for display; ``None`` once the match is permanent."""

        if match.status == MatchStatus.RESONANCE:
            return None
        return max(0.0, (match.expires_at - now) / timedelta(hours=1))

    @staticmethod
    def promote_to_resonance(match: Match, now: datetime) -> Match:
        if match.status == MatchStatus.RESONANCE:
            return match
        LOGGER.info("Match promoted to resonance: id=%s", match.id)
        return match.model_copy(update={"status": MatchStatus.RESONANCE, "resonance_at": now})

    def promote_in(self, matches: Tuple[Match, ...], match_id: str, now: datetime) -> Tuple[Match, ...]:
        """Promote ``match_id`` within a collection, raising if it is not there."""

        if self.find_match(matches, match_id) is None:
            raise MatchNotFoundError(f"match {match_id} not found")
        return tuple(
            self.promote_to_resonance(m, now) if m.id == match_id else m for m in matches
        )

    @staticmethod
    def record_message(match: Match, now: datetime) -> Match:
        return match.model_copy(update={"last_message_at": now})

    @staticmethod
    def rewind(state: SwipeSessionState, is_premium: bool) -> RewindResult:
        """Undo the last swipe's cursor move and history entry.

        A match formed by the undone swipe is left in place.
        """

        if not is_premium or not state.history or state.current_index <= 0:
            return RewindResult(accepted=False, state=state)

        undone = state.history[-1]
        rewound = state.model_copy(
            update={
                "current_index": state.current_index - 1,
                "history": state.history[:-1],
            }
        )
        LOGGER.info("Swipe rewound: user=%s candidate=%s", state.user_id, undone.candidate_id)
        return RewindResult(accepted=True, state=rewound, undone=undone)


__all__ = ["MATCH_TTL_HOURS", "MatchLifecycleManager"]

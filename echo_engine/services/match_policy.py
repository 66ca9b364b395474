"""Pluggable decision of whether a swipe turns into a match."""

from __future__ import annotations

import random
from typing import Iterable, Optional, Protocol

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..db.mongo import get_likes_collection
from ..models.profile import DiscoveryProfile
from ..models.swipe import SwipeAction

LIKE_MATCH_CHANCE = 0.30
SUPERLIKE_MATCH_CHANCE = 0.60


class MatchDecisionPolicy(Protocol):
    def decide(self, candidate: DiscoveryProfile, action: SwipeAction) -> bool:
        ...


class LocalRandomPolicy:
    """Stochastic stand-in for a reciprocity check. Demo and tests only.

    A client cannot be trusted to decide whether it matched; production
    deployments use :class:`ReciprocityPolicy` backed by the likes store.
    """

    def __init__(
        self,
        like_chance: float = LIKE_MATCH_CHANCE,
        superlike_chance: float = SUPERLIKE_MATCH_CHANCE,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._chances = {
            SwipeAction.LIKE: like_chance,
            SwipeAction.SUPERLIKE: superlike_chance,
            SwipeAction.NOPE: 0.0,
        }
        self._rng = rng or random.Random()

    def decide(self, candidate: DiscoveryProfile, action: SwipeAction) -> bool:
        chance = self._chances.get(action, 0.0)
        if chance <= 0:
            return False
        return self._rng.random() < chance


class ReciprocityPolicy:
    """Matches only when the candidate already liked the swiping user."""

    def __init__(self, liked_by: Iterable[str]) -> None:
        self._liked_by = frozenset(liked_by)

    def decide(self, candidate: DiscoveryProfile, action: SwipeAction) -> bool:
        if action == SwipeAction.NOPE:
            return False
        return candidate.id in self._liked_by


async def load_reciprocity_policy(db: AsyncIOMotorDatabase, user_id: str) -> ReciprocityPolicy:
    """Build a :class:`ReciprocityPolicy` from the likes the user has received."""

    collection = get_likes_collection(db)
    liker_ids = await collection.distinct("liker_id", {"liked_id": user_id})
    return ReciprocityPolicy(str(liker_id) for liker_id in liker_ids if liker_id)


__all__ = [
    "LIKE_MATCH_CHANCE",
    "SUPERLIKE_MATCH_CHANCE",
    "LocalRandomPolicy",
    "MatchDecisionPolicy",
    "ReciprocityPolicy",
    "load_reciprocity_policy",
]

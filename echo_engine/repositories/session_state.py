"""Durable store for the per-user swipe session state."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, Sequence, Tuple, Type, TypeVar

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import BaseModel, ValidationError

from ..db.collections import (
    DISCOVERY_QUEUES_COLLECTION,
    ENTITLEMENTS_COLLECTION,
    MATCHES_COLLECTION,
    SWIPE_HISTORY_COLLECTION,
    SWIPE_LIMITS_COLLECTION,
    SWIPE_STATS_COLLECTION,
)
from ..models.entitlement import Entitlement
from ..models.match import Match
from ..models.profile import DiscoveryProfile
from ..models.swipe import SwipeHistoryEntry, SwipeLimits, SwipeStats
from .exceptions import CorruptDocumentError

LOGGER = logging.getLogger("uvicorn.error")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _document(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(by_alias=True, mode="json")


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionStateRepository:
    """One document per user and key, always replaced as a whole.

    Writes are idempotent upserts so the engine can write through after
    every mutation without tracking what changed.
    """

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self._database[name]

    async def _replace(self, name: str, user_id: str, payload: dict[str, Any]) -> None:
        await self.collection(name).replace_one(
            {"userId": user_id},
            {**payload, "userId": user_id, "updatedAt": _now_ms()},
            upsert=True,
        )

    async def _find(self, name: str, user_id: str) -> Optional[dict[str, Any]]:
        return await self.collection(name).find_one({"userId": user_id}, projection={"_id": 0})

    @staticmethod
    def _parse(model: Type[ModelT], raw: Any, label: str) -> ModelT:
        try:
            return model.model_validate(raw)
        except ValidationError as exc:
            LOGGER.error("Stored %s document failed validation: %s", label, exc)
            raise CorruptDocumentError(f"invalid {label} document") from exc

    async def _get_items(self, name: str, user_id: str, model: Type[ModelT]) -> Tuple[ModelT, ...]:
        doc = await self._find(name, user_id)
        if not doc:
            return ()
        return tuple(self._parse(model, item, name) for item in doc.get("items") or [])

    async def _save_items(self, name: str, user_id: str, items: Sequence[BaseModel]) -> None:
        await self._replace(name, user_id, {"items": [_document(item) for item in items]})

    async def get_limits(self, user_id: str) -> Optional[SwipeLimits]:
        doc = await self._find(SWIPE_LIMITS_COLLECTION, user_id)
        return self._parse(SwipeLimits, doc, SWIPE_LIMITS_COLLECTION) if doc else None

    async def save_limits(self, user_id: str, limits: SwipeLimits) -> None:
        await self._replace(SWIPE_LIMITS_COLLECTION, user_id, _document(limits))

    async def get_history(self, user_id: str) -> Tuple[SwipeHistoryEntry, ...]:
        return await self._get_items(SWIPE_HISTORY_COLLECTION, user_id, SwipeHistoryEntry)

    async def save_history(self, user_id: str, history: Sequence[SwipeHistoryEntry]) -> None:
        await self._save_items(SWIPE_HISTORY_COLLECTION, user_id, history)

    async def get_stats(self, user_id: str) -> SwipeStats:
        doc = await self._find(SWIPE_STATS_COLLECTION, user_id)
        return self._parse(SwipeStats, doc, SWIPE_STATS_COLLECTION) if doc else SwipeStats()

    async def save_stats(self, user_id: str, stats: SwipeStats) -> None:
        await self._replace(SWIPE_STATS_COLLECTION, user_id, _document(stats))

    async def get_matches(self, user_id: str) -> Tuple[Match, ...]:
        return await self._get_items(MATCHES_COLLECTION, user_id, Match)

    async def save_matches(self, user_id: str, matches: Sequence[Match]) -> None:
        await self._save_items(MATCHES_COLLECTION, user_id, matches)

    async def get_queue(self, user_id: str) -> Tuple[Tuple[DiscoveryProfile, ...], int]:
        doc = await self._find(DISCOVERY_QUEUES_COLLECTION, user_id)
        if not doc:
            return (), 0
        profiles = tuple(
            self._parse(DiscoveryProfile, item, DISCOVERY_QUEUES_COLLECTION)
            for item in doc.get("items") or []
        )
        return profiles, int(doc.get("currentIndex") or 0)

    async def save_queue(
        self, user_id: str, queue: Sequence[DiscoveryProfile], current_index: int
    ) -> None:
        await self._replace(
            DISCOVERY_QUEUES_COLLECTION,
            user_id,
            {"items": [_document(p) for p in queue], "currentIndex": current_index},
        )

    async def save_cursor(self, user_id: str, current_index: int) -> None:
        await self.collection(DISCOVERY_QUEUES_COLLECTION).update_one(
            {"userId": user_id},
            {
                "$set": {"currentIndex": current_index, "updatedAt": _now_ms()},
                "$setOnInsert": {"items": []},
            },
            upsert=True,
        )

    async def get_entitlement(self, user_id: str) -> Optional[Entitlement]:
        doc = await self._find(ENTITLEMENTS_COLLECTION, user_id)
        return self._parse(Entitlement, doc, ENTITLEMENTS_COLLECTION) if doc else None

    async def save_entitlement(self, user_id: str, entitlement: Entitlement) -> None:
        """Written by the billing side; the engine itself only reads entitlements."""

        await self._replace(ENTITLEMENTS_COLLECTION, user_id, _document(entitlement))


__all__ = ["SessionStateRepository"]

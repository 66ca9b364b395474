"""Discovery feed provider backed by the dating profiles collection."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import ValidationError

from ..db.collections import DATING_PROFILES_COLLECTION
from ..models.location import Coordinates
from ..models.profile import DiscoveryFilters, DiscoveryProfile
from ..models.types import utc_now
from ..services.echo_status import is_discoverable
from ..services.resonance_service import distance_km

LOGGER = logging.getLogger("uvicorn.error")


class DiscoveryFeed(Protocol):
    async def fetch_page(
        self,
        viewer_id: str,
        filters: DiscoveryFilters,
        viewer_location: Optional[Coordinates] = None,
    ) -> List[DiscoveryProfile]:
        ...


def _point_coordinates(raw: Any) -> Optional[Coordinates]:
    if not isinstance(raw, dict) or str(raw.get("type") or "").lower() != "point":
        return None
    coords = raw.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    try:
        return Coordinates(latitude=float(coords[1]), longitude=float(coords[0]))
    except (TypeError, ValueError):
        return None


def _primary_photo(doc: Dict[str, Any]) -> Optional[str]:
    primary = doc.get("primaryPhotoUrl")
    if isinstance(primary, str) and primary.strip():
        return primary.strip()
    photos = doc.get("photos")
    if isinstance(photos, list):
        return next((p.strip() for p in photos if isinstance(p, str) and p.strip()), None)
    return None


class MongoDiscoveryFeed:
    """Pages candidates ordered by freshest photo, skipping silenced Echoes."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = database[DATING_PROFILES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    @staticmethod
    def _build_query(viewer_id: str, filters: DiscoveryFilters) -> Dict[str, Any]:
        query: Dict[str, Any] = {"userId": {"$ne": viewer_id}, "isActive": True}
        age: Dict[str, int] = {}
        if filters.min_age is not None:
            age["$gte"] = filters.min_age
        if filters.max_age is not None:
            age["$lte"] = filters.max_age
        if age:
            query["age"] = age
        if filters.verified_only:
            query["isVerified"] = True
        return query

    async def fetch_page(
        self,
        viewer_id: str,
        filters: DiscoveryFilters,
        viewer_location: Optional[Coordinates] = None,
        now: Optional[datetime] = None,
    ) -> List[DiscoveryProfile]:
        now = now or utc_now()
        docs = await self._collection.find(
            self._build_query(viewer_id, filters),
            sort=[("lastPhotoAt", -1)],
            skip=filters.offset,
            limit=filters.limit,
        ).to_list(length=None)

        profiles: List[DiscoveryProfile] = []
        for doc in docs:
            distance = None
            location = _point_coordinates(doc.get("location"))
            if viewer_location is not None and location is not None:
                distance = distance_km(
                    viewer_location.latitude,
                    viewer_location.longitude,
                    location.latitude,
                    location.longitude,
                )
            if filters.max_distance_km is not None and (
                distance is None or distance > filters.max_distance_km
            ):
                continue

            try:
                profile = DiscoveryProfile(
                    id=doc.get("userId"),
                    first_name=doc.get("firstName") or "",
                    age=doc.get("age"),
                    bio=doc.get("bio"),
                    interests=doc.get("interests") or [],
                    photo_url=_primary_photo(doc),
                    distance_km=distance,
                    is_verified=bool(doc.get("isVerified")),
                    last_refreshed_at=doc.get("lastPhotoAt"),
                    wingman_quote=doc.get("wingmanQuote"),
                )
            except ValidationError as exc:
                LOGGER.warning("Skipping malformed dating profile %s: %s", doc.get("_id"), exc)
                continue

            if not is_discoverable(profile.last_refreshed_at, now):
                continue
            profiles.append(profile)
        return profiles


__all__ = ["DiscoveryFeed", "MongoDiscoveryFeed"]

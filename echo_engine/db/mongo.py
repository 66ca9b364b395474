from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from .collections import DATING_PROFILES_COLLECTION, LIKES_COLLECTION, SESSION_STATE_COLLECTIONS


async def ensure_likes_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[LIKES_COLLECTION]
    await collection.create_index(
        [("liker_id", ASCENDING), ("liked_id", ASCENDING)],
        name="likes_liker_liked_unique",
        unique=True,
    )
    await collection.create_index(
        [("liked_id", ASCENDING), ("created_at", DESCENDING)],
        name="likes_liked_id_idx",
    )


async def ensure_session_indexes(db: AsyncIOMotorDatabase) -> None:
    for name in SESSION_STATE_COLLECTIONS:
        await db[name].create_index("userId", unique=True, name=f"{name}_user_unique")


async def ensure_discovery_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[DATING_PROFILES_COLLECTION]
    await collection.create_index("userId", unique=True, sparse=True)
    await collection.create_index([("lastPhotoAt", DESCENDING)], name="dating_profiles_last_photo_idx")


def get_likes_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    return db[LIKES_COLLECTION]


__all__ = [
    "ensure_discovery_indexes",
    "ensure_likes_indexes",
    "ensure_session_indexes",
    "get_likes_collection",
]

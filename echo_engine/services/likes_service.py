from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from ..db.mongo import get_likes_collection
from ..models.swipe import SwipeAction


async def record_like(
    db: AsyncIOMotorDatabase, liker_id: str, liked_id: str, action: SwipeAction
) -> bool:
    """Store a like so the counterparty's reciprocity check can see it.

    Returns ``True`` when the like is new.
    """

    if liker_id == liked_id:
        raise ValueError("Users cannot like themselves")
    if action == SwipeAction.NOPE:
        return False

    collection = get_likes_collection(db)
    try:
        result = await collection.update_one(
            {"liker_id": liker_id, "liked_id": liked_id},
            {
                "$setOnInsert": {
                    "liker_id": liker_id,
                    "liked_id": liked_id,
                    "created_at": datetime.now(timezone.utc),
                },
                "$set": {"action": action.value},
            },
            upsert=True,
        )
    except DuplicateKeyError:
        # Treat duplicate as success; the unique index guarantees idempotency
        return False
    return result.upserted_id is not None


__all__ = ["record_like"]

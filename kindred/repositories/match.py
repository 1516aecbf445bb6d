"""Repository helpers for match persistence."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import MATCHES_COLLECTION
from ..models.match import MatchDocument, Slot, ordered_pair, pair_key
from .exceptions import NotFoundRepositoryError

LOGGER = logging.getLogger("uvicorn.error")


class MatchRepository:
    """MongoDB access layer for match documents."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[MATCHES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def get_by_id(self, match_id: ObjectId) -> Optional[MatchDocument]:
        doc = await self._collection.find_one({"_id": match_id})
        return MatchDocument(**doc) if doc else None

    async def get_active_for_pair(self, user_a: ObjectId, user_b: ObjectId) -> Optional[MatchDocument]:
        doc = await self._collection.find_one({"activePairKey": pair_key(user_a, user_b)})
        return MatchDocument(**doc) if doc else None

    async def pair_has_history(self, user_a: ObjectId, user_b: ObjectId) -> bool:
        """True when the pair has ever had a match, active or not."""
        doc = await self._collection.find_one(
            {"pairKey": pair_key(user_a, user_b)},
            projection={"_id": 1},
        )
        return doc is not None

    async def ensure_active(
        self,
        user_a: ObjectId,
        user_b: ObjectId,
        now_ms: int,
    ) -> Tuple[MatchDocument, bool]:
        """Return the pair's active match, creating it if needed.

        The second element is ``True`` only for the caller whose upsert
        inserted the document. Concurrent callers converge on the same match
        through the unique ``activePairKey`` index.
        """

        key = pair_key(user_a, user_b)
        created = False
        try:
            result = await self._collection.update_one(
                {"activePairKey": key},
                {
                    "$setOnInsert": {
                        "users": ordered_pair(user_a, user_b),
                        "pairKey": key,
                        "isActive": True,
                        "lastMessageAt": now_ms,
                        "unread": {"first": 0, "second": 0},
                        "createdAt": now_ms,
                        "updatedAt": now_ms,
                    }
                },
                upsert=True,
            )
            created = result.upserted_id is not None
        except DuplicateKeyError:
            # Lost the race; the winner's document is read below.
            LOGGER.debug("Concurrent match creation for pair %s", key)

        doc = await self._collection.find_one({"activePairKey": key})
        if not doc:  # pragma: no cover - only if unmatched between the two calls
            raise NotFoundRepositoryError("match vanished during creation")
        return MatchDocument(**doc), created

    async def deactivate(self, match_id: ObjectId, now_ms: int) -> Optional[MatchDocument]:
        """End an active match; ``None`` when it was already inactive or missing."""
        doc = await self._collection.find_one_and_update(
            {"_id": match_id, "isActive": True},
            {"$set": {"isActive": False, "updatedAt": now_ms}, "$unset": {"activePairKey": ""}},
            return_document=ReturnDocument.AFTER,
        )
        return MatchDocument(**doc) if doc else None

    async def record_message(self, match_id: ObjectId, recipient_slot: Slot, now_ms: int) -> bool:
        """Bump the recipient's unread counter and the last-activity marker."""
        result = await self._collection.update_one(
            {"_id": match_id, "isActive": True},
            {
                "$inc": {f"unread.{recipient_slot}": 1},
                "$set": {"lastMessageAt": now_ms, "updatedAt": now_ms},
            },
        )
        return result.matched_count > 0

    async def consume_unread(self, match_id: ObjectId, slot: Slot, count: int) -> None:
        """Take ``count`` newly read or deleted messages off a participant's counter."""
        if count <= 0:
            return
        await self._collection.update_one({"_id": match_id}, {"$inc": {f"unread.{slot}": -count}})

    async def list_active_for_user(
        self,
        user_id: ObjectId,
        *,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[MatchDocument]:
        cursor = (
            self._collection.find({"users": user_id, "isActive": True})
            .sort([("lastMessageAt", DESCENDING), ("_id", DESCENDING)])
            .skip(skip)
        )
        if limit:
            cursor = cursor.limit(limit)
        return [MatchDocument(**doc) async for doc in cursor]

    async def count_active_for_user(self, user_id: ObjectId) -> int:
        return await self._collection.count_documents({"users": user_id, "isActive": True})

    async def active_ids_for_user(self, user_id: ObjectId) -> List[ObjectId]:
        cursor = self._collection.find({"users": user_id, "isActive": True}, projection={"_id": 1})
        return [doc["_id"] async for doc in cursor]


__all__ = ["MatchRepository"]

"""Repository helpers for chat message persistence."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from ..db.collections import MESSAGES_COLLECTION
from ..models.message import MessageDocument


class MessageRepository:
    """MongoDB access layer for message documents."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[MESSAGES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_message(
        self,
        *,
        match_id: ObjectId,
        sender_id: ObjectId,
        message: str,
        message_type: str,
        created_at: int,
    ) -> MessageDocument:
        doc = {
            "_id": ObjectId(),
            "matchId": match_id,
            "senderId": sender_id,
            "message": message,
            "messageType": message_type,
            "isRead": False,
            "readAt": None,
            "isDeleted": False,
            "deletedAt": None,
            "createdAt": created_at,
        }
        await self._collection.insert_one(doc)
        return MessageDocument(**doc)

    async def get_by_id(self, message_id: ObjectId) -> Optional[MessageDocument]:
        doc = await self._collection.find_one({"_id": message_id})
        return MessageDocument(**doc) if doc else None

    async def list_page(self, match_id: ObjectId, *, skip: int, limit: int) -> List[MessageDocument]:
        """Newest-first page of visible messages."""
        cursor = (
            self._collection.find({"matchId": match_id, "isDeleted": False})
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        return [MessageDocument(**doc) async for doc in cursor]

    async def mark_read(self, match_id: ObjectId, reader_id: ObjectId, now_ms: int) -> int:
        """Mark every unread message from the other participant as read."""
        result = await self._collection.update_many(
            {
                "matchId": match_id,
                "senderId": {"$ne": reader_id},
                "isRead": False,
                "isDeleted": False,
            },
            {"$set": {"isRead": True, "readAt": now_ms}},
        )
        return int(result.modified_count)

    async def soft_delete(self, message_id: ObjectId, now_ms: int) -> Optional[MessageDocument]:
        """Hide a message; returns its state before deletion, ``None`` if already hidden."""
        doc = await self._collection.find_one_and_update(
            {"_id": message_id, "isDeleted": False},
            {"$set": {"isDeleted": True, "deletedAt": now_ms}},
            return_document=ReturnDocument.BEFORE,
        )
        return MessageDocument(**doc) if doc else None

    async def count_all(self, match_id: ObjectId) -> int:
        """Audit count, soft-deleted messages included."""
        return await self._collection.count_documents({"matchId": match_id})

    async def unread_counts(self, match_ids: Iterable[ObjectId], reader_id: ObjectId) -> Dict[ObjectId, int]:
        ids = list(match_ids)
        if not ids:
            return {}
        pipeline = [
            {
                "$match": {
                    "matchId": {"$in": ids},
                    "senderId": {"$ne": reader_id},
                    "isRead": False,
                    "isDeleted": False,
                }
            },
            {"$group": {"_id": "$matchId", "count": {"$sum": 1}}},
        ]
        rows = await self._collection.aggregate(pipeline).to_list(length=None)
        return {row["_id"]: int(row["count"]) for row in rows}


__all__ = ["MessageRepository"]

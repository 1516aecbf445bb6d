"""Index definitions for the service collections (idempotent)."""

from __future__ import annotations

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, GEOSPHERE

from .collections import MATCHES_COLLECTION, MESSAGES_COLLECTION, PROFILES_COLLECTION

LOGGER = logging.getLogger("uvicorn.error")


async def ensure_profile_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[PROFILES_COLLECTION]
    await collection.create_index("email", name="users_email_unique", unique=True)
    await collection.create_index("phone", name="users_phone_unique", unique=True, sparse=True)
    await collection.create_index(
        [("isActive", ASCENDING), ("isBlocked", ASCENDING)],
        name="users_active_blocked_idx",
    )
    try:
        await collection.create_index([("location", GEOSPHERE)], name="users_location_2dsphere")
    except Exception as exc:  # pragma: no cover - depends on server geo support
        LOGGER.error("Failed to ensure 2dsphere index on users.location: %s", exc)


async def ensure_match_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[MATCHES_COLLECTION]
    # At most one active match per unordered pair; the key is unset on unmatch.
    await collection.create_index(
        "activePairKey",
        name="matches_active_pair_unique",
        unique=True,
        sparse=True,
    )
    await collection.create_index("pairKey", name="matches_pair_idx")
    await collection.create_index(
        [("users", ASCENDING), ("isActive", ASCENDING), ("lastMessageAt", DESCENDING)],
        name="matches_users_active_idx",
    )


async def ensure_message_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[MESSAGES_COLLECTION]
    await collection.create_index(
        [("matchId", ASCENDING), ("createdAt", DESCENDING)],
        name="messages_match_created_idx",
    )
    await collection.create_index("senderId", name="messages_sender_idx")
    await collection.create_index("isRead", name="messages_is_read_idx")


__all__ = ["ensure_profile_indexes", "ensure_match_indexes", "ensure_message_indexes"]

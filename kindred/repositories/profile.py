"""Repository helpers for profile persistence."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import PROFILES_COLLECTION
from ..models.profile import GeoPoint, ProfileDocument
from ..utils.geo import haversine_km, km_to_meters
from .exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError

LOGGER = logging.getLogger("uvicorn.error")


class ProfileRepository:
    """MongoDB access layer for profile documents and their social graph."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[PROFILES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def create_profile(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        gender: str,
        dob: datetime,
        created_at: int,
        phone: Optional[str] = None,
        location: Optional[GeoPoint] = None,
    ) -> ProfileDocument:
        """Insert a new profile document."""

        doc = {
            "_id": ObjectId(),
            "name": name,
            "email": email,
            "passwordHash": password_hash,
            "gender": gender,
            "dob": dob,
            "bio": "",
            "interests": [],
            "photos": [],
            "location": location.model_dump() if location else None,
            "isPremium": False,
            "premiumExpiresAt": None,
            "isVerified": False,
            "isActive": True,
            "isBlocked": False,
            "likes": [],
            "likedBy": [],
            "matches": [],
            "blocked": [],
            "blockedBy": [],
            "fcmToken": None,
            "lastActive": created_at,
            "createdAt": created_at,
            "updatedAt": created_at,
        }
        # Sparse unique index: omit the key entirely when no phone is given.
        if phone:
            doc["phone"] = phone
        try:
            await self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            field = "phone" if phone and "phone" in str(exc) else "email"
            LOGGER.debug("Duplicate profile insertion for %s", field)
            raise DuplicateKeyRepositoryError(f"{field} already registered", field=field) from exc
        return ProfileDocument(**doc)

    async def get_by_id(self, profile_id: ObjectId) -> Optional[ProfileDocument]:
        doc = await self._collection.find_one({"_id": profile_id})
        return ProfileDocument(**doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[ProfileDocument]:
        doc = await self._collection.find_one({"email": email.lower()})
        return ProfileDocument(**doc) if doc else None

    async def get_many(self, profile_ids: Iterable[ObjectId]) -> List[ProfileDocument]:
        ids = list(profile_ids)
        if not ids:
            return []
        cursor = self._collection.find({"_id": {"$in": ids}})
        by_id = {doc["_id"]: ProfileDocument(**doc) async for doc in cursor}
        return [by_id[pid] for pid in ids if pid in by_id]

    async def email_exists(self, email: str) -> bool:
        doc = await self._collection.find_one({"email": email.lower()}, projection={"_id": 1})
        return doc is not None

    async def phone_exists(self, phone: str) -> bool:
        doc = await self._collection.find_one({"phone": phone}, projection={"_id": 1})
        return doc is not None

    async def update_profile(
        self,
        profile_id: ObjectId,
        updates: dict[str, Any],
    ) -> ProfileDocument:
        """``$set`` the given fields and return the updated document."""

        result = await self._collection.find_one_and_update(
            {"_id": profile_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            raise NotFoundRepositoryError("profile not found")
        return ProfileDocument(**result)

    async def push_photo(self, profile_id: ObjectId, url: str, updated_at: int) -> ProfileDocument:
        result = await self._collection.find_one_and_update(
            {"_id": profile_id},
            {"$push": {"photos": url}, "$set": {"updatedAt": updated_at}},
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            raise NotFoundRepositoryError("profile not found")
        return ProfileDocument(**result)

    async def replace_photos(
        self,
        profile_id: ObjectId,
        expected: List[str],
        photos: List[str],
        updated_at: int,
    ) -> Optional[ProfileDocument]:
        """Swap the photo list only if it still equals ``expected``; ``None`` otherwise."""

        result = await self._collection.find_one_and_update(
            {"_id": profile_id, "photos": expected},
            {"$set": {"photos": photos, "updatedAt": updated_at}},
            return_document=ReturnDocument.AFTER,
        )
        return ProfileDocument(**result) if result else None

    async def touch_last_active(self, profile_id: ObjectId, now_ms: int) -> None:
        await self._collection.update_one({"_id": profile_id}, {"$set": {"lastActive": now_ms}})

    # Social graph. Each helper is a single-document atomic update.

    async def add_like(self, liker_id: ObjectId, liked_id: ObjectId, now_ms: int) -> bool:
        """Record ``liker -> liked``; ``False`` when the like already existed."""

        result = await self._collection.update_one(
            {"_id": liker_id, "likes": {"$ne": liked_id}},
            {"$addToSet": {"likes": liked_id}, "$set": {"lastActive": now_ms}},
        )
        return result.matched_count > 0

    async def add_liked_by(self, liked_id: ObjectId, liker_id: ObjectId) -> None:
        await self._collection.update_one({"_id": liked_id}, {"$addToSet": {"likedBy": liker_id}})

    async def remove_like(self, liker_id: ObjectId, liked_id: ObjectId) -> None:
        await self._collection.update_one({"_id": liker_id}, {"$pull": {"likes": liked_id}})
        await self._collection.update_one({"_id": liked_id}, {"$pull": {"likedBy": liker_id}})

    async def has_liked(self, liker_id: ObjectId, liked_id: ObjectId) -> bool:
        doc = await self._collection.find_one(
            {"_id": liker_id, "likes": liked_id},
            projection={"_id": 1},
        )
        return doc is not None

    async def link_match(self, user_a: ObjectId, user_b: ObjectId) -> None:
        await self._collection.update_one({"_id": user_a}, {"$addToSet": {"matches": user_b}})
        await self._collection.update_one({"_id": user_b}, {"$addToSet": {"matches": user_a}})

    async def unlink_match(self, user_a: ObjectId, user_b: ObjectId) -> None:
        await self._collection.update_one({"_id": user_a}, {"$pull": {"matches": user_b}})
        await self._collection.update_one({"_id": user_b}, {"$pull": {"matches": user_a}})

    async def block(self, blocker_id: ObjectId, blocked_id: ObjectId, now_ms: int) -> None:
        """Store the block as an inverse pair and sever likes and matches both ways."""

        await self._collection.update_one(
            {"_id": blocker_id},
            {
                "$addToSet": {"blocked": blocked_id},
                "$pull": {"likes": blocked_id, "likedBy": blocked_id, "matches": blocked_id},
                "$set": {"updatedAt": now_ms},
            },
        )
        await self._collection.update_one(
            {"_id": blocked_id},
            {
                "$addToSet": {"blockedBy": blocker_id},
                "$pull": {"likes": blocker_id, "likedBy": blocker_id, "matches": blocker_id},
            },
        )

    async def unblock(self, blocker_id: ObjectId, blocked_id: ObjectId, now_ms: int) -> None:
        await self._collection.update_one(
            {"_id": blocker_id},
            {"$pull": {"blocked": blocked_id}, "$set": {"updatedAt": now_ms}},
        )
        await self._collection.update_one({"_id": blocked_id}, {"$pull": {"blockedBy": blocker_id}})

    async def find_nearby(
        self,
        *,
        origin: GeoPoint,
        exclude_ids: Iterable[ObjectId],
        max_distance_km: float,
        skip: int,
        limit: int,
        use_geo_index: bool = True,
    ) -> List[ProfileDocument]:
        """Active, profile-complete profiles within range, nearest first.

        With ``use_geo_index`` the server's 2dsphere ``$near`` query sorts and
        paginates. Otherwise the filtered set is ranked here by haversine
        distance, which keeps discovery working on stores without geo support.
        """

        query: dict[str, Any] = {
            "_id": {"$nin": list(exclude_ids)},
            "isActive": True,
            "isBlocked": False,
            "photos": {"$exists": True, "$ne": []},
        }

        if use_geo_index:
            query["location"] = {
                "$near": {
                    "$geometry": origin.model_dump(),
                    "$maxDistance": km_to_meters(max_distance_km),
                }
            }
            cursor = self._collection.find(query).skip(skip).limit(limit)
            return [ProfileDocument(**doc) async for doc in cursor]

        query["location"] = {"$ne": None}
        ranked: list[tuple[float, str, ProfileDocument]] = []
        async for doc in self._collection.find(query):
            profile = ProfileDocument(**doc)
            if profile.location is None:
                continue
            distance_km = haversine_km(
                origin.latitude,
                origin.longitude,
                profile.location.latitude,
                profile.location.longitude,
            )
            if distance_km > max_distance_km:
                continue
            ranked.append((distance_km, str(profile.id), profile))
        ranked.sort(key=lambda item: (item[0], item[1]))
        return [profile for _, _, profile in ranked[skip : skip + limit]]


__all__ = ["ProfileRepository"]

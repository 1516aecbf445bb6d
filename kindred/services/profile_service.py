from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import bcrypt
import jwt
from bson import ObjectId

from ..config import get_settings
from ..db import get_db
from ..errors import AlreadyExists, Forbidden, InvalidOperation, NotFound, ValidationFailed
from ..models.profile import (
    GeoPoint,
    LoginRequest,
    ProfileDocument,
    ProfilePatch,
    ProfileSummary,
    SignupRequest,
)
from ..repositories.exceptions import DuplicateKeyRepositoryError, NotFoundRepositoryError
from ..repositories.match import MatchRepository
from ..repositories.profile import ProfileRepository
from .validation import (
    MAX_PHOTOS,
    clean_str,
    validate_bio,
    validate_coordinates,
    validate_dob,
    validate_email,
    validate_gender,
    validate_interests,
    validate_name,
    validate_phone,
    validate_photo_url,
)

LOGGER = logging.getLogger("uvicorn.error")

PHOTO_WRITE_ATTEMPTS = 3

TOKEN_TYPE = "user"


class ProfileService:
    """Sign-up, login and profile maintenance for the caller's own record."""

    def __init__(
        self,
        repository: ProfileRepository,
        match_repository: MatchRepository,
        *,
        jwt_secret: str,
        token_ttl_seconds: int,
    ) -> None:
        self._repository = repository
        self._matches = match_repository
        self._jwt_secret = jwt_secret
        self._token_ttl = token_ttl_seconds

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    @staticmethod
    def hash_password(raw: str) -> str:
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(raw.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(raw: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def issue_token(self, profile_id: ObjectId) -> str:
        now = int(time.time())
        payload = {
            "sub": str(profile_id),
            "type": TOKEN_TYPE,
            "iat": now,
            "exp": now + self._token_ttl,
        }
        return jwt.encode(payload, self._jwt_secret, algorithm="HS256")

    def decode_token(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            payload = jwt.decode(token, self._jwt_secret, algorithms=["HS256"])
        except jwt.PyJWTError:
            return None
        if payload.get("type") != TOKEN_TYPE:
            return None
        return payload

    async def get_profile_from_token(self, token: str) -> Optional[ProfileDocument]:
        if not token:
            return None
        payload = self.decode_token(token)
        if not payload:
            return None
        subject = str(payload.get("sub") or "").strip()
        if not ObjectId.is_valid(subject):
            return None
        return await self._repository.get_by_id(ObjectId(subject))

    async def get_profile(self, profile_id: ObjectId) -> ProfileDocument:
        profile = await self._repository.get_by_id(profile_id)
        if not profile:
            raise NotFound("user not found")
        return profile

    async def register(self, payload: SignupRequest) -> ProfileDocument:
        name = validate_name(payload.name)
        email = validate_email(payload.email)
        phone = validate_phone(payload.phone)
        gender = validate_gender(payload.gender)
        dob = validate_dob(payload.dob)

        location: Optional[GeoPoint] = None
        if payload.latitude is not None or payload.longitude is not None:
            lat, lon = validate_coordinates(payload.latitude, payload.longitude)
            location = GeoPoint.from_lat_lon(lat, lon)

        if await self._repository.email_exists(email):
            raise AlreadyExists("email already registered")
        if phone and await self._repository.phone_exists(phone):
            raise AlreadyExists("phone number already registered")

        try:
            profile = await self._repository.create_profile(
                name=name,
                email=email,
                password_hash=self.hash_password(payload.password),
                gender=gender,
                dob=dob,
                phone=phone,
                location=location,
                created_at=self._now_ms(),
            )
        except DuplicateKeyRepositoryError as exc:
            raise AlreadyExists(str(exc)) from None

        LOGGER.info("Registered profile %s", profile.id)
        return profile

    async def authenticate(self, payload: LoginRequest) -> ProfileDocument:
        email = clean_str(payload.email)
        if not email:
            raise ValidationFailed("email required")
        profile = await self._repository.get_by_email(email)
        if not profile or not self.verify_password(payload.password, profile.password_hash):
            raise Forbidden("invalid credentials")
        if not profile.is_available():
            raise Forbidden("account is deactivated or blocked")
        now_ms = self._now_ms()
        await self._repository.touch_last_active(profile.id, now_ms)
        return profile.model_copy(update={"last_active": now_ms})

    async def update_profile(self, profile_id: ObjectId, patch: ProfilePatch) -> ProfileDocument:
        updates: Dict[str, Any] = {}
        if patch.name is not None:
            updates["name"] = validate_name(patch.name)
        if patch.bio is not None:
            updates["bio"] = validate_bio(patch.bio)
        if patch.interests is not None:
            updates["interests"] = validate_interests(patch.interests)
        if patch.gender is not None:
            updates["gender"] = validate_gender(patch.gender)

        if not updates:
            return await self.get_profile(profile_id)

        updates["updatedAt"] = self._now_ms()
        return await self._update(profile_id, updates)

    async def update_location(self, profile_id: ObjectId, latitude: float, longitude: float) -> ProfileDocument:
        lat, lon = validate_coordinates(latitude, longitude)
        point = GeoPoint.from_lat_lon(lat, lon)
        return await self._update(
            profile_id,
            {"location": point.model_dump(), "updatedAt": self._now_ms()},
        )

    async def add_photo(self, profile_id: ObjectId, url: str) -> ProfileDocument:
        photo_url = validate_photo_url(url)
        profile = await self.get_profile(profile_id)
        if len(profile.photos) >= MAX_PHOTOS:
            raise ValidationFailed(f"maximum {MAX_PHOTOS} photos allowed")
        try:
            return await self._repository.push_photo(profile_id, photo_url, self._now_ms())
        except NotFoundRepositoryError:
            raise NotFound("user not found") from None

    async def remove_photo(self, profile_id: ObjectId, index: int) -> ProfileDocument:
        # The write only lands on the list that was read, so a concurrent add is re-read, not lost.
        for _ in range(PHOTO_WRITE_ATTEMPTS):
            profile = await self.get_profile(profile_id)
            if index < 0 or index >= len(profile.photos):
                raise ValidationFailed("invalid photo index")
            photos = list(profile.photos)
            photos.pop(index)
            updated = await self._repository.replace_photos(profile_id, profile.photos, photos, self._now_ms())
            if updated:
                return updated
            LOGGER.debug("Photos of %s changed during removal; retrying", profile_id)
        raise InvalidOperation("photos changed while removing; try again")

    async def set_fcm_token(self, profile_id: ObjectId, token: str) -> None:
        cleaned = clean_str(token, max_len=4096)
        if not cleaned:
            raise ValidationFailed("FCM token is required")
        await self._update(profile_id, {"fcmToken": cleaned})

    async def block(self, profile_id: ObjectId, target_id: ObjectId) -> None:
        if profile_id == target_id:
            raise InvalidOperation("cannot block yourself")
        if not await self._repository.get_by_id(target_id):
            raise NotFound("user not found")

        now_ms = self._now_ms()
        await self._repository.block(profile_id, target_id, now_ms)
        active = await self._matches.get_active_for_pair(profile_id, target_id)
        if active:
            await self._matches.deactivate(active.id, now_ms)
            LOGGER.info("Match %s deactivated by block", active.id)

    async def unblock(self, profile_id: ObjectId, target_id: ObjectId) -> None:
        await self._repository.unblock(profile_id, target_id, self._now_ms())

    async def list_blocked(self, profile_id: ObjectId) -> List[ProfileSummary]:
        profile = await self.get_profile(profile_id)
        blocked = await self._repository.get_many(profile.blocked)
        return [ProfileSummary.from_document(doc) for doc in blocked]

    async def _update(self, profile_id: ObjectId, updates: Dict[str, Any]) -> ProfileDocument:
        try:
            return await self._repository.update_profile(profile_id, updates)
        except NotFoundRepositoryError:
            raise NotFound("user not found") from None


def get_profile_service() -> ProfileService:
    settings = get_settings()
    db = get_db()
    return ProfileService(
        ProfileRepository(db),
        MatchRepository(db),
        jwt_secret=settings.jwt_secret,
        token_ttl_seconds=settings.auth_token_ttl,
    )


__all__ = ["ProfileService", "get_profile_service"]

from datetime import date, datetime, timezone
import time
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..utils.geo import build_geojson_point
from .identifiers import PyObjectId

Gender = Literal["male", "female", "non-binary", "other"]

_DAYS_PER_YEAR = 365.25


def age_from_dob(dob: datetime, now: Optional[datetime] = None) -> int:
    """Whole years elapsed since ``dob`` using 365.25-day years."""
    if dob.tzinfo is None:
        dob = dob.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    return int((current - dob).total_seconds() // (_DAYS_PER_YEAR * 24 * 3600))


class GeoPoint(BaseModel):
    """GeoJSON point; coordinates are ``[longitude, latitude]``."""

    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(min_length=2, max_length=2)

    @classmethod
    def from_lat_lon(cls, latitude: float, longitude: float) -> "GeoPoint":
        return cls(**build_geojson_point(latitude, longitude))

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


class ProfileDocument(BaseModel):
    """Canonical profile document stored in MongoDB."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    name: str
    email: str
    phone: Optional[str] = None
    password_hash: str = Field(alias="passwordHash")
    gender: str
    dob: datetime
    bio: str = ""
    interests: List[str] = Field(default_factory=list)
    photos: List[str] = Field(default_factory=list)
    location: Optional[GeoPoint] = None
    is_premium: bool = Field(default=False, alias="isPremium")
    premium_expires_at: Optional[int] = Field(default=None, alias="premiumExpiresAt")
    is_verified: bool = Field(default=False, alias="isVerified")
    is_active: bool = Field(default=True, alias="isActive")
    is_blocked: bool = Field(default=False, alias="isBlocked")
    likes: List[PyObjectId] = Field(default_factory=list)
    liked_by: List[PyObjectId] = Field(default_factory=list, alias="likedBy")
    matches: List[PyObjectId] = Field(default_factory=list)
    blocked: List[PyObjectId] = Field(default_factory=list)
    blocked_by: List[PyObjectId] = Field(default_factory=list, alias="blockedBy")
    fcm_token: Optional[str] = Field(default=None, alias="fcmToken")
    last_active: int = Field(alias="lastActive")
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")

    @computed_field(alias="age")  # type: ignore[misc]
    @property
    def age(self) -> int:
        return age_from_dob(self.dob)

    @computed_field(alias="profileCompleted")  # type: ignore[misc]
    @property
    def profile_completed(self) -> bool:
        return len(self.photos) > 0

    def is_premium_active(self, now_ms: Optional[int] = None) -> bool:
        if not self.is_premium:
            return False
        if self.premium_expires_at is None:
            return True
        return self.premium_expires_at > (now_ms or int(time.time() * 1000))

    def is_available(self) -> bool:
        return self.is_active and not self.is_blocked

    def can_be_seen_by(self, other_id) -> bool:
        return (
            other_id not in self.blocked
            and other_id not in self.blocked_by
            and self.is_available()
        )


class ProfileSummary(BaseModel):
    """Public card shown in discovery, matches and chat headers."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId
    name: str
    photos: List[str] = Field(default_factory=list)
    bio: str = ""
    interests: List[str] = Field(default_factory=list)
    age: int
    last_active: Optional[int] = Field(default=None, alias="lastActive")

    @classmethod
    def from_document(cls, doc: ProfileDocument) -> "ProfileSummary":
        return cls(
            id=doc.id,
            name=doc.name,
            photos=list(doc.photos),
            bio=doc.bio,
            interests=list(doc.interests),
            age=doc.age,
            last_active=doc.last_active,
        )


class PublicProfile(BaseModel):
    """The caller's own profile, without credentials."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId
    name: str
    email: str
    phone: Optional[str] = None
    gender: str
    dob: datetime
    age: int
    bio: str = ""
    interests: List[str] = Field(default_factory=list)
    photos: List[str] = Field(default_factory=list)
    location: Optional[GeoPoint] = None
    is_premium: bool = Field(default=False, alias="isPremium")
    premium_expires_at: Optional[int] = Field(default=None, alias="premiumExpiresAt")
    is_verified: bool = Field(default=False, alias="isVerified")
    profile_completed: bool = Field(alias="profileCompleted")
    likes: List[PyObjectId] = Field(default_factory=list)
    matches: List[PyObjectId] = Field(default_factory=list)
    last_active: int = Field(alias="lastActive")
    created_at: int = Field(alias="createdAt")

    @classmethod
    def from_document(cls, doc: ProfileDocument) -> "PublicProfile":
        data = doc.model_dump(by_alias=True)
        data["id"] = data.pop("_id")
        return cls(**data)


class SignupRequest(BaseModel):
    """Payload for creating a new profile via the public sign-up flow."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=2, max_length=50)
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=6, max_length=128)
    gender: Gender
    dob: date
    phone: Optional[str] = Field(default=None, max_length=32)
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    token: str
    user: PublicProfile


class ProfilePatch(BaseModel):
    """Mutable fields for partial profile updates."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=500)
    interests: Optional[List[str]] = None
    gender: Optional[Gender] = None


class LocationUpdate(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class PhotoAddRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    photo_url: str = Field(alias="photoUrl", min_length=1)


class PhotosResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    photos: List[str]
    profile_completed: bool = Field(alias="profileCompleted")


class FcmTokenUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fcm_token: str = Field(alias="fcmToken", min_length=1)


class BlockedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blocked_users: List[ProfileSummary] = Field(default_factory=list, alias="blockedUsers")


class StatusResponse(BaseModel):
    success: bool = True
    message: str


__all__ = [
    "AuthResponse",
    "BlockedResponse",
    "FcmTokenUpdate",
    "Gender",
    "GeoPoint",
    "LocationUpdate",
    "LoginRequest",
    "PhotoAddRequest",
    "PhotosResponse",
    "ProfileDocument",
    "ProfilePatch",
    "ProfileSummary",
    "PublicProfile",
    "SignupRequest",
    "StatusResponse",
    "age_from_dob",
]

from typing import List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from .identifiers import PyObjectId
from .profile import ProfileSummary

Slot = Literal["first", "second"]


def pair_key(user_a: ObjectId, user_b: ObjectId) -> str:
    """Order-independent key for a participant pair."""
    lo, hi = sorted((str(user_a), str(user_b)))
    return f"{lo}:{hi}"


def ordered_pair(user_a: ObjectId, user_b: ObjectId) -> List[ObjectId]:
    return sorted((user_a, user_b), key=str)


class UnreadCounters(BaseModel):
    """One counter per participant, aligned with ``MatchDocument.users``."""

    first: int = 0
    second: int = 0


class MatchDocument(BaseModel):
    """Canonical match document stored in MongoDB."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    users: List[PyObjectId] = Field(min_length=2, max_length=2)
    pair_key: str = Field(alias="pairKey")
    active_pair_key: Optional[str] = Field(default=None, alias="activePairKey")
    is_active: bool = Field(default=True, alias="isActive")
    last_message_at: int = Field(alias="lastMessageAt")
    unread: UnreadCounters = Field(default_factory=UnreadCounters)
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")

    def has_user(self, user_id: ObjectId) -> bool:
        return user_id in self.users

    def other_user(self, user_id: ObjectId) -> ObjectId:
        first, second = self.users
        return second if user_id == first else first

    def slot_for(self, user_id: ObjectId) -> Slot:
        if user_id == self.users[0]:
            return "first"
        if user_id == self.users[1]:
            return "second"
        raise ValueError("user is not a participant of this match")

    def unread_for(self, user_id: ObjectId) -> int:
        return getattr(self.unread, self.slot_for(user_id))


class LikeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_user_id: str = Field(alias="targetUserId", min_length=1)


class MatchSummary(BaseModel):
    """Returned to the liker when a like completes a match."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId
    users: List[ProfileSummary]
    created_at: int = Field(alias="createdAt")


class LikeResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    is_match: bool = Field(alias="isMatch")
    match: Optional[MatchSummary] = None


class MatchView(BaseModel):
    """A match as seen by one participant."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId
    created_at: int = Field(alias="createdAt")
    last_message_at: int = Field(alias="lastMessageAt")
    unread_count: int = Field(default=0, alias="unreadCount")
    other_user: Optional[ProfileSummary] = Field(default=None, alias="otherUser")


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    has_more: bool = Field(alias="hasMore")
    total: Optional[int] = None


class MatchListResponse(BaseModel):
    matches: List[MatchView] = Field(default_factory=list)
    pagination: Pagination


class MatchDetailResponse(BaseModel):
    match: MatchView


class MatchStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_matches: int = Field(alias="totalMatches")
    total_likes: int = Field(alias="totalLikes")
    total_liked_by: int = Field(alias="totalLikedBy")
    match_rate: int = Field(alias="matchRate")


class MatchStatsResponse(BaseModel):
    stats: MatchStats


class MatchCreatedEvent(BaseModel):
    """Payload handed to the notification collaborator."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    type: Literal["match.created"] = "match.created"
    match_id: PyObjectId = Field(alias="matchId")
    users: List[PyObjectId]
    initiator_id: PyObjectId = Field(alias="initiatorId")
    notify_user_id: PyObjectId = Field(alias="notifyUserId")
    fcm_token: Optional[str] = Field(default=None, alias="fcmToken")
    created_at: int = Field(alias="createdAt")


__all__ = [
    "LikeRequest",
    "LikeResult",
    "MatchCreatedEvent",
    "MatchDetailResponse",
    "MatchDocument",
    "MatchListResponse",
    "MatchStats",
    "MatchStatsResponse",
    "MatchSummary",
    "MatchView",
    "Pagination",
    "UnreadCounters",
    "ordered_pair",
    "pair_key",
]

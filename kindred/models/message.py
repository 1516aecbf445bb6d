from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .identifiers import PyObjectId
from .match import Pagination

MESSAGE_TYPES = ("text", "image", "gif", "emoji")
MessageType = Literal["text", "image", "gif", "emoji"]
MAX_MESSAGE_LENGTH = 1000


class MessageDocument(BaseModel):
    """Chat entry scoped to one match."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: PyObjectId = Field(alias="_id")
    match_id: PyObjectId = Field(alias="matchId")
    sender_id: PyObjectId = Field(alias="senderId")
    message: str
    message_type: str = Field(default="text", alias="messageType")
    is_read: bool = Field(default=False, alias="isRead")
    read_at: Optional[int] = Field(default=None, alias="readAt")
    is_deleted: bool = Field(default=False, alias="isDeleted")
    deleted_at: Optional[int] = Field(default=None, alias="deletedAt")
    created_at: int = Field(alias="createdAt")


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    message_type: MessageType = Field(default="text", alias="messageType")


class MessageListResponse(BaseModel):
    messages: List[MessageDocument] = Field(default_factory=list)
    pagination: Pagination


class MessageCreatedResponse(BaseModel):
    message: MessageDocument


class UnreadSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    unread_counts: Dict[str, int] = Field(default_factory=dict, alias="unreadCounts")
    total_unread: int = Field(default=0, alias="totalUnread")


class MarkReadResponse(BaseModel):
    success: bool = True
    marked: int = 0


__all__ = [
    "MAX_MESSAGE_LENGTH",
    "MESSAGE_TYPES",
    "MarkReadResponse",
    "MessageCreatedResponse",
    "MessageDocument",
    "MessageListResponse",
    "MessageType",
    "SendMessageRequest",
    "UnreadSummary",
]

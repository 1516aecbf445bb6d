from __future__ import annotations

import logging
import time

from bson import ObjectId

from ..db import get_db
from ..errors import Forbidden, NotFound
from ..models.match import MatchDocument, Pagination
from ..models.message import MessageDocument, MessageListResponse, UnreadSummary
from ..repositories.match import MatchRepository
from ..repositories.message import MessageRepository
from .validation import validate_message, validate_pagination

LOGGER = logging.getLogger("uvicorn.error")


class ConversationService:
    """Per-match chat: sending, paging, read receipts and soft deletion."""

    def __init__(self, messages: MessageRepository, matches: MatchRepository) -> None:
        self._messages = messages
        self._matches = matches

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def _authorize(self, match_id: ObjectId, user_id: ObjectId) -> MatchDocument:
        match = await self._matches.get_by_id(match_id)
        if not match or not match.is_active:
            raise NotFound("match not found")
        if not match.has_user(user_id):
            raise Forbidden("not authorized to access this chat")
        return match

    async def send(
        self,
        match_id: ObjectId,
        sender_id: ObjectId,
        body: str,
        message_type: str = "text",
    ) -> MessageDocument:
        text, kind = validate_message(body, message_type)
        match = await self._authorize(match_id, sender_id)

        now_ms = self._now_ms()
        message = await self._messages.create_message(
            match_id=match.id,
            sender_id=sender_id,
            message=text,
            message_type=kind,
            created_at=now_ms,
        )
        recipient_slot = match.slot_for(match.other_user(sender_id))
        if not await self._matches.record_message(match.id, recipient_slot, now_ms):
            LOGGER.warning("Match %s deactivated while message %s was sent", match.id, message.id)
        return message

    async def list_messages(
        self,
        match_id: ObjectId,
        requester_id: ObjectId,
        page: int = 1,
        page_size: int = 50,
    ) -> MessageListResponse:
        """Return a page in chronological order and mark the requester's inbox read."""
        skip, limit = validate_pagination(page, page_size)
        match = await self._authorize(match_id, requester_id)

        newest_first = await self._messages.list_page(match.id, skip=skip, limit=limit)
        await self._read(match, requester_id)

        return MessageListResponse(
            messages=list(reversed(newest_first)),
            pagination=Pagination(page=page, limit=limit, has_more=len(newest_first) == limit),
        )

    async def mark_read(self, match_id: ObjectId, requester_id: ObjectId) -> int:
        match = await self._authorize(match_id, requester_id)
        return await self._read(match, requester_id)

    async def _read(self, match: MatchDocument, reader_id: ObjectId) -> int:
        marked = await self._messages.mark_read(match.id, reader_id, self._now_ms())
        await self._matches.consume_unread(match.id, match.slot_for(reader_id), marked)
        return marked

    async def delete_message(self, match_id: ObjectId, message_id: ObjectId, requester_id: ObjectId) -> None:
        match = await self._authorize(match_id, requester_id)
        message = await self._messages.get_by_id(message_id)
        if not message or message.match_id != match.id:
            raise NotFound("message not found")
        if message.sender_id != requester_id:
            raise Forbidden("not authorized to delete this message")
        previous = await self._messages.soft_delete(message.id, self._now_ms())
        if previous and not previous.is_read:
            recipient_slot = match.slot_for(match.other_user(requester_id))
            await self._matches.consume_unread(match.id, recipient_slot, 1)

    async def unread_summary(self, user_id: ObjectId) -> UnreadSummary:
        match_ids = await self._matches.active_ids_for_user(user_id)
        counts = await self._messages.unread_counts(match_ids, user_id)
        return UnreadSummary(
            unread_counts={str(mid): count for mid, count in counts.items()},
            total_unread=sum(counts.values()),
        )

    async def audit_count(self, match_id: ObjectId) -> int:
        return await self._messages.count_all(match_id)


def get_conversation_service() -> ConversationService:
    db = get_db()
    return ConversationService(MessageRepository(db), MatchRepository(db))


__all__ = ["ConversationService", "get_conversation_service"]

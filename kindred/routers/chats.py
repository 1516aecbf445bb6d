from fastapi import APIRouter, Depends, Query, status

from ..models.identifiers import parse_object_id
from ..models.message import (
    MarkReadResponse,
    MessageCreatedResponse,
    MessageListResponse,
    SendMessageRequest,
    UnreadSummary,
)
from ..models.profile import ProfileDocument, StatusResponse
from ..services.conversation_service import ConversationService, get_conversation_service
from .auth import require_current_profile

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("/unread/count", response_model=UnreadSummary)
async def unread_count(
    current: ProfileDocument = Depends(require_current_profile),
    service: ConversationService = Depends(get_conversation_service),
):
    return await service.unread_summary(current.id)


@router.get("/{match_id}", response_model=MessageListResponse)
async def list_messages(
    match_id: str,
    page: int = Query(default=1),
    limit: int = Query(default=50),
    current: ProfileDocument = Depends(require_current_profile),
    service: ConversationService = Depends(get_conversation_service),
):
    return await service.list_messages(parse_object_id(match_id, "match id"), current.id, page, limit)


@router.post("/{match_id}", response_model=MessageCreatedResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    match_id: str,
    body: SendMessageRequest,
    current: ProfileDocument = Depends(require_current_profile),
    service: ConversationService = Depends(get_conversation_service),
):
    message = await service.send(
        parse_object_id(match_id, "match id"),
        current.id,
        body.message,
        body.message_type,
    )
    return MessageCreatedResponse(message=message)


@router.put("/{match_id}/read", response_model=MarkReadResponse)
async def mark_read(
    match_id: str,
    current: ProfileDocument = Depends(require_current_profile),
    service: ConversationService = Depends(get_conversation_service),
):
    marked = await service.mark_read(parse_object_id(match_id, "match id"), current.id)
    return MarkReadResponse(marked=marked)


@router.delete("/{match_id}/messages/{message_id}", response_model=StatusResponse)
async def delete_message(
    match_id: str,
    message_id: str,
    current: ProfileDocument = Depends(require_current_profile),
    service: ConversationService = Depends(get_conversation_service),
):
    await service.delete_message(
        parse_object_id(match_id, "match id"),
        parse_object_id(message_id, "message id"),
        current.id,
    )
    return StatusResponse(message="message deleted")


__all__ = ["router"]

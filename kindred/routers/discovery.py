from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models.discovery import DiscoveryPage
from ..models.identifiers import parse_object_id
from ..models.match import LikeRequest, LikeResult
from ..models.profile import ProfileDocument, StatusResponse
from ..services.discovery_service import DiscoveryService, get_discovery_service
from ..services.matching_service import MatchingService, get_matching_service
from .auth import require_current_profile

router = APIRouter(prefix="/discovery", tags=["discovery"])


@router.get("", response_model=DiscoveryPage)
async def discover(
    page: int = Query(default=1),
    limit: int = Query(default=20),
    max_distance: Optional[float] = Query(default=None, alias="maxDistance"),
    current: ProfileDocument = Depends(require_current_profile),
    service: DiscoveryService = Depends(get_discovery_service),
):
    return await service.find_candidates(current.id, page, limit, max_distance)


@router.post("/like", response_model=LikeResult)
async def like(
    body: LikeRequest,
    current: ProfileDocument = Depends(require_current_profile),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.like(current.id, parse_object_id(body.target_user_id, "target user id"))


@router.post("/super-like", response_model=LikeResult)
async def super_like(
    body: LikeRequest,
    current: ProfileDocument = Depends(require_current_profile),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.super_like(current.id, parse_object_id(body.target_user_id, "target user id"))


@router.post("/dislike", response_model=StatusResponse)
async def dislike(
    body: LikeRequest,
    current: ProfileDocument = Depends(require_current_profile),
    service: MatchingService = Depends(get_matching_service),
):
    await service.dislike(current.id, parse_object_id(body.target_user_id, "target user id"))
    return StatusResponse(message="user disliked")


__all__ = ["router"]

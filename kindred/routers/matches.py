from fastapi import APIRouter, Depends, Query

from ..models.identifiers import parse_object_id
from ..models.match import MatchDetailResponse, MatchListResponse, MatchStatsResponse
from ..models.profile import ProfileDocument, StatusResponse
from ..services.matching_service import MatchingService, get_matching_service
from .auth import require_current_profile

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("", response_model=MatchListResponse)
async def list_matches(
    page: int = Query(default=1),
    limit: int = Query(default=20),
    current: ProfileDocument = Depends(require_current_profile),
    service: MatchingService = Depends(get_matching_service),
):
    return await service.list_matches(current.id, page, limit)


@router.get("/stats/overview", response_model=MatchStatsResponse)
async def match_stats(
    current: ProfileDocument = Depends(require_current_profile),
    service: MatchingService = Depends(get_matching_service),
):
    return MatchStatsResponse(stats=await service.stats(current.id))


@router.get("/{match_id}", response_model=MatchDetailResponse)
async def get_match(
    match_id: str,
    current: ProfileDocument = Depends(require_current_profile),
    service: MatchingService = Depends(get_matching_service),
):
    match = await service.get_match(current.id, parse_object_id(match_id, "match id"))
    return MatchDetailResponse(match=match)


@router.delete("/{match_id}", response_model=StatusResponse)
async def unmatch(
    match_id: str,
    current: ProfileDocument = Depends(require_current_profile),
    service: MatchingService = Depends(get_matching_service),
):
    await service.unmatch(current.id, parse_object_id(match_id, "match id"))
    return StatusResponse(message="match removed")


__all__ = ["router"]

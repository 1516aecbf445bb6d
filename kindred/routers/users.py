from fastapi import APIRouter, Depends

from ..models.identifiers import parse_object_id
from ..models.profile import (
    BlockedResponse,
    FcmTokenUpdate,
    LocationUpdate,
    PhotoAddRequest,
    PhotosResponse,
    ProfileDocument,
    ProfilePatch,
    PublicProfile,
    StatusResponse,
)
from ..services.profile_service import ProfileService, get_profile_service
from .auth import require_current_profile

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=PublicProfile)
async def get_profile(current: ProfileDocument = Depends(require_current_profile)):
    return PublicProfile.from_document(current)


@router.put("/profile", response_model=PublicProfile)
async def update_profile(
    patch: ProfilePatch,
    current: ProfileDocument = Depends(require_current_profile),
    service: ProfileService = Depends(get_profile_service),
):
    updated = await service.update_profile(current.id, patch)
    return PublicProfile.from_document(updated)


@router.put("/location", response_model=PublicProfile)
async def update_location(
    body: LocationUpdate,
    current: ProfileDocument = Depends(require_current_profile),
    service: ProfileService = Depends(get_profile_service),
):
    updated = await service.update_location(current.id, body.latitude, body.longitude)
    return PublicProfile.from_document(updated)


@router.post("/photos", response_model=PhotosResponse)
async def add_photo(
    body: PhotoAddRequest,
    current: ProfileDocument = Depends(require_current_profile),
    service: ProfileService = Depends(get_profile_service),
):
    updated = await service.add_photo(current.id, body.photo_url)
    return PhotosResponse(photos=updated.photos, profile_completed=updated.profile_completed)


@router.delete("/photos/{index}", response_model=PhotosResponse)
async def remove_photo(
    index: int,
    current: ProfileDocument = Depends(require_current_profile),
    service: ProfileService = Depends(get_profile_service),
):
    updated = await service.remove_photo(current.id, index)
    return PhotosResponse(photos=updated.photos, profile_completed=updated.profile_completed)


@router.post("/block/{user_id}", response_model=StatusResponse)
async def block_user(
    user_id: str,
    current: ProfileDocument = Depends(require_current_profile),
    service: ProfileService = Depends(get_profile_service),
):
    await service.block(current.id, parse_object_id(user_id, "user id"))
    return StatusResponse(message="user blocked")


@router.delete("/block/{user_id}", response_model=StatusResponse)
async def unblock_user(
    user_id: str,
    current: ProfileDocument = Depends(require_current_profile),
    service: ProfileService = Depends(get_profile_service),
):
    await service.unblock(current.id, parse_object_id(user_id, "user id"))
    return StatusResponse(message="user unblocked")


@router.get("/blocked", response_model=BlockedResponse)
async def blocked_users(
    current: ProfileDocument = Depends(require_current_profile),
    service: ProfileService = Depends(get_profile_service),
):
    return BlockedResponse(blocked_users=await service.list_blocked(current.id))


@router.put("/fcm-token", response_model=StatusResponse)
async def update_fcm_token(
    body: FcmTokenUpdate,
    current: ProfileDocument = Depends(require_current_profile),
    service: ProfileService = Depends(get_profile_service),
):
    await service.set_fcm_token(current.id, body.fcm_token)
    return StatusResponse(message="FCM token updated")


__all__ = ["router"]

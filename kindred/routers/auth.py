from fastapi import APIRouter, Depends, Header, HTTPException, status

from ..models.profile import (
    AuthResponse,
    LoginRequest,
    ProfileDocument,
    PublicProfile,
    SignupRequest,
)
from ..services.profile_service import ProfileService, get_profile_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _extract_token(authorization: str) -> str:
    if not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing bearer token")
    return token


async def require_current_profile(
    authorization: str = Header(default=""),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDocument:
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="authorization required")
    token = _extract_token(authorization)
    profile = await service.get_profile_from_token(token)
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token")
    if not profile.is_available():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="account is deactivated or blocked")
    return profile


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    service: ProfileService = Depends(get_profile_service),
):
    profile = await service.register(body)
    token = service.issue_token(profile.id)
    return AuthResponse(token=token, user=PublicProfile.from_document(profile))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    service: ProfileService = Depends(get_profile_service),
):
    profile = await service.authenticate(body)
    token = service.issue_token(profile.id)
    return AuthResponse(token=token, user=PublicProfile.from_document(profile))


@router.get("/me", response_model=PublicProfile)
async def me(current: ProfileDocument = Depends(require_current_profile)):
    return PublicProfile.from_document(current)


__all__ = ["require_current_profile", "router"]

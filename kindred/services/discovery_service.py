from __future__ import annotations

import logging
from typing import Optional

from bson import ObjectId

from ..config import get_settings
from ..db import get_db
from ..errors import NotFound, PreconditionFailed
from ..models.discovery import DiscoveryCandidate, DiscoveryPage
from ..models.match import Pagination
from ..models.profile import ProfileSummary
from ..repositories.profile import ProfileRepository
from ..utils.geo import haversine_km, round_distance
from .validation import validate_max_distance, validate_pagination

LOGGER = logging.getLogger("uvicorn.error")


class DiscoveryService:
    """Surfaces nearby candidates the seeker has not acted on yet."""

    def __init__(
        self,
        repository: ProfileRepository,
        *,
        use_geo_index: bool = True,
        default_radius_km: float = 50.0,
    ) -> None:
        self._repository = repository
        self._use_geo_index = use_geo_index
        self._default_radius_km = default_radius_km

    async def find_candidates(
        self,
        seeker_id: ObjectId,
        page: int = 1,
        page_size: int = 20,
        max_distance_km: Optional[float] = None,
    ) -> DiscoveryPage:
        skip, limit = validate_pagination(page, page_size)
        radius = validate_max_distance(
            self._default_radius_km if max_distance_km is None else max_distance_km
        )

        seeker = await self._repository.get_by_id(seeker_id)
        if not seeker:
            raise NotFound("user not found")
        if seeker.location is None:
            raise PreconditionFailed("location required")

        excluded = {seeker.id, *seeker.likes, *seeker.blocked, *seeker.blocked_by}
        profiles = await self._repository.find_nearby(
            origin=seeker.location,
            exclude_ids=excluded,
            max_distance_km=radius,
            skip=skip,
            limit=limit,
            use_geo_index=self._use_geo_index,
        )

        origin = seeker.location
        users = []
        for profile in profiles:
            # Stale blockedBy on the seeker side is covered by the candidate's own list.
            if seeker.id in profile.blocked:
                continue
            distance_km = haversine_km(
                origin.latitude,
                origin.longitude,
                profile.location.latitude,
                profile.location.longitude,
            )
            summary = ProfileSummary.from_document(profile)
            users.append(
                DiscoveryCandidate(**summary.model_dump(), distance=round_distance(distance_km))
            )

        LOGGER.debug("Discovery for %s returned %d of %d", seeker_id, len(users), limit)
        return DiscoveryPage(
            users=users,
            pagination=Pagination(page=page, limit=limit, has_more=len(profiles) == limit),
        )


def get_discovery_service() -> DiscoveryService:
    settings = get_settings()
    return DiscoveryService(
        ProfileRepository(get_db()),
        use_geo_index=settings.geo_index_enabled,
        default_radius_km=settings.discovery_default_radius_km,
    )


__all__ = ["DiscoveryService", "get_discovery_service"]

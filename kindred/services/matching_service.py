"""Mutual-like detection and match lifecycle.

Likes are stored on both profiles (``likes`` on the liker, ``likedBy`` on the
liked). Once both directions exist an active match document is ensured for the
pair. Match creation is an upsert keyed on ``activePairKey`` which a unique
index protects, so concurrent mutual likes converge on a single match.
"""

from __future__ import annotations

import logging
import math
import time
from typing import List, Optional

from bson import ObjectId

from ..db import get_db
from ..errors import AlreadyExists, Forbidden, InvalidOperation, NotFound, Unavailable
from ..models.match import (
    LikeResult,
    MatchCreatedEvent,
    MatchDocument,
    MatchListResponse,
    MatchStats,
    MatchSummary,
    MatchView,
    Pagination,
)
from ..models.profile import ProfileDocument, ProfileSummary
from ..notifications import MatchCreatedHook, publish_match_created
from ..repositories.match import MatchRepository
from ..repositories.profile import ProfileRepository
from .validation import validate_pagination

LOGGER = logging.getLogger("uvicorn.error")


class MatchingService:
    def __init__(
        self,
        profiles: ProfileRepository,
        matches: MatchRepository,
        on_match: Optional[MatchCreatedHook] = publish_match_created,
    ) -> None:
        self._profiles = profiles
        self._matches = matches
        self._on_match = on_match

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    async def _load(self, profile_id: ObjectId) -> ProfileDocument:
        profile = await self._profiles.get_by_id(profile_id)
        if not profile:
            raise NotFound("user not found")
        return profile

    async def like(self, seeker_id: ObjectId, target_id: ObjectId) -> LikeResult:
        if seeker_id == target_id:
            raise InvalidOperation("cannot like yourself")
        target = await self._load(target_id)
        seeker = await self._load(seeker_id)
        if not target.is_available():
            raise Unavailable("user is not available")
        if seeker_id in target.blocked or seeker_id in target.blocked_by:
            raise Unavailable("user is not available")
        return await self._record_like(seeker, target)

    async def super_like(self, seeker_id: ObjectId, target_id: ObjectId) -> LikeResult:
        seeker = await self._load(seeker_id)
        if not seeker.is_premium_active(self._now_ms()):
            raise Forbidden("super like is a premium feature")
        return await self.like(seeker_id, target_id)

    async def _record_like(self, seeker: ProfileDocument, target: ProfileDocument) -> LikeResult:
        now_ms = self._now_ms()
        added = await self._profiles.add_like(seeker.id, target.id, now_ms)
        if not added:
            # A previous like may have stopped short of creating its match.
            if await self._profiles.has_liked(target.id, seeker.id):
                await self._create_if_never_matched(seeker, target)
            raise AlreadyExists("already liked this user")

        await self._profiles.add_liked_by(target.id, seeker.id)

        # Re-read so a like the target committed concurrently is visible.
        if not await self._profiles.has_liked(target.id, seeker.id):
            return LikeResult(is_match=False)

        match, _ = await self._ensure_match(seeker, target, now_ms)
        return LikeResult(
            is_match=True,
            match=MatchSummary(
                id=match.id,
                users=[ProfileSummary.from_document(seeker), ProfileSummary.from_document(target)],
                created_at=match.created_at,
            ),
        )

    async def _ensure_match(
        self,
        initiator: ProfileDocument,
        other: ProfileDocument,
        now_ms: int,
    ) -> tuple[MatchDocument, bool]:
        match, created = await self._matches.ensure_active(initiator.id, other.id, now_ms)
        await self._profiles.link_match(initiator.id, other.id)
        if created:
            LOGGER.info("Match %s created between %s and %s", match.id, initiator.id, other.id)
            await self._notify(match, initiator, other)
        return match, created

    async def _create_if_never_matched(self, initiator: ProfileDocument, other: ProfileDocument) -> bool:
        if await self._matches.pair_has_history(initiator.id, other.id):
            return False
        _, created = await self._ensure_match(initiator, other, self._now_ms())
        return created

    async def _notify(self, match: MatchDocument, initiator: ProfileDocument, other: ProfileDocument) -> None:
        if self._on_match is None:
            return
        event = MatchCreatedEvent(
            match_id=match.id,
            users=list(match.users),
            initiator_id=initiator.id,
            notify_user_id=other.id,
            fcm_token=other.fcm_token,
            created_at=match.created_at,
        )
        try:
            await self._on_match(event)
        except Exception:
            LOGGER.exception("match.created hook failed for %s", match.id)

    async def dislike(self, seeker_id: ObjectId, target_id: ObjectId) -> None:
        if seeker_id == target_id:
            raise InvalidOperation("cannot dislike yourself")
        await self._load(target_id)
        await self._profiles.remove_like(seeker_id, target_id)

    async def unmatch(self, user_id: ObjectId, match_id: ObjectId) -> None:
        match = await self._matches.get_by_id(match_id)
        if not match:
            raise NotFound("match not found")
        if not match.has_user(user_id):
            raise Forbidden("not authorized to unmatch this user")

        # Only the call that ends the match unlinks the pair; a later match may own the link.
        if not await self._matches.deactivate(match.id, self._now_ms()):
            return
        await self._profiles.unlink_match(user_id, match.other_user(user_id))
        LOGGER.info("Match %s removed by %s", match.id, user_id)

    async def reconcile(self, user_id: ObjectId) -> int:
        """Create matches for mutual likes that never got one; returns how many."""
        user = await self._load(user_id)
        created = 0
        for other in await self._profiles.get_many(user.likes):
            if user.id not in other.likes:
                continue
            if await self._create_if_never_matched(user, other):
                created += 1
        if created:
            LOGGER.info("Reconciled %d missing match(es) for %s", created, user_id)
        return created

    async def list_matches(self, user_id: ObjectId, page: int = 1, page_size: int = 20) -> MatchListResponse:
        skip, limit = validate_pagination(page, page_size)
        await self.reconcile(user_id)

        total = await self._matches.count_active_for_user(user_id)
        matches = await self._matches.list_active_for_user(user_id, skip=skip, limit=limit)
        others = await self._profiles.get_many(match.other_user(user_id) for match in matches)
        by_id = {profile.id: profile for profile in others}

        views: List[MatchView] = []
        for match in matches:
            other = by_id.get(match.other_user(user_id))
            if other is None or not other.is_available():
                continue
            views.append(self._view(match, user_id, other))

        return MatchListResponse(
            matches=views,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                has_more=skip + len(matches) < total,
            ),
        )

    async def get_match(self, user_id: ObjectId, match_id: ObjectId) -> MatchView:
        match = await self._matches.get_by_id(match_id)
        if not match:
            raise NotFound("match not found")
        if not match.has_user(user_id):
            raise Forbidden("not authorized to view this match")
        other = await self._profiles.get_by_id(match.other_user(user_id))
        return self._view(match, user_id, other)

    async def stats(self, user_id: ObjectId) -> MatchStats:
        user = await self._load(user_id)
        total_matches = len(user.matches)
        total_liked_by = len(user.liked_by)
        rate = math.floor(total_matches / total_liked_by * 100 + 0.5) if total_liked_by else 0
        return MatchStats(
            total_matches=total_matches,
            total_likes=len(user.likes),
            total_liked_by=total_liked_by,
            match_rate=rate,
        )

    @staticmethod
    def _view(match: MatchDocument, user_id: ObjectId, other: Optional[ProfileDocument]) -> MatchView:
        return MatchView(
            id=match.id,
            created_at=match.created_at,
            last_message_at=match.last_message_at,
            unread_count=match.unread_for(user_id),
            other_user=ProfileSummary.from_document(other) if other else None,
        )


def get_matching_service() -> MatchingService:
    db = get_db()
    return MatchingService(ProfileRepository(db), MatchRepository(db))


__all__ = ["MatchingService", "get_matching_service"]

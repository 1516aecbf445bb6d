from __future__ import annotations

import pytest
from bson import ObjectId

from kindred.errors import NotFound, PreconditionFailed, ValidationFailed


@pytest.mark.asyncio
async def test_nearby_candidate_carries_rounded_distance(discovery, make_profile) -> None:
    seeker = await make_profile("Asha", lat=12.97, lon=77.59)
    nearby = await make_profile("Bela", lat=12.93, lon=77.61)

    page = await discovery.find_candidates(seeker.id, 1, 20, 50)

    assert [user.id for user in page.users] == [nearby.id]
    assert page.users[0].distance == 4.9
    assert page.pagination.has_more is False


@pytest.mark.asyncio
async def test_seeker_never_sees_themselves(discovery, make_profile) -> None:
    seeker = await make_profile("Asha")
    page = await discovery.find_candidates(seeker.id, 1, 20, 50)
    assert seeker.id not in {user.id for user in page.users}


@pytest.mark.asyncio
async def test_excludes_liked_and_blocked_profiles(discovery, make_profile, profiles) -> None:
    seeker = await make_profile("Asha")
    liked = await make_profile("Bela")
    blocked = await make_profile("Chitra")
    blocker = await make_profile("Deepa")
    visible = await make_profile("Esha")

    await profiles.add_like(seeker.id, liked.id, 1)
    await profiles.block(seeker.id, blocked.id, 1)
    await profiles.block(blocker.id, seeker.id, 1)

    page = await discovery.find_candidates(seeker.id, 1, 20, 50)

    assert [user.id for user in page.users] == [visible.id]


@pytest.mark.asyncio
async def test_skips_inactive_and_incomplete_profiles(discovery, make_profile) -> None:
    seeker = await make_profile("Asha")
    await make_profile("Bela", isActive=False)
    await make_profile("Chitra", isBlocked=True)
    await make_profile("Deepa", photos=[])
    await make_profile("Esha", lat=None)

    page = await discovery.find_candidates(seeker.id, 1, 20, 50)

    assert page.users == []


@pytest.mark.asyncio
async def test_respects_max_distance_and_orders_by_proximity(discovery, make_profile) -> None:
    seeker = await make_profile("Asha", lat=12.97, lon=77.59)
    far = await make_profile("Bela", lat=13.20, lon=77.59)
    near = await make_profile("Chitra", lat=12.96, lon=77.59)
    await make_profile("Deepa", lat=19.07, lon=72.87)

    page = await discovery.find_candidates(seeker.id, 1, 20, 50)

    assert [user.id for user in page.users] == [near.id, far.id]
    assert page.users[0].distance < page.users[1].distance


@pytest.mark.asyncio
async def test_pagination_reports_has_more_on_full_page(discovery, make_profile) -> None:
    seeker = await make_profile("Asha", lat=12.97, lon=77.59)
    for idx in range(3):
        await make_profile(f"User{idx}", lat=12.97 + 0.01 * (idx + 1), lon=77.59)

    first = await discovery.find_candidates(seeker.id, 1, 2, 50)
    second = await discovery.find_candidates(seeker.id, 2, 2, 50)

    assert len(first.users) == 2
    assert first.pagination.has_more is True
    assert len(second.users) == 1
    assert second.pagination.has_more is False
    assert {u.id for u in first.users}.isdisjoint({u.id for u in second.users})


@pytest.mark.asyncio
async def test_location_is_required(discovery, make_profile) -> None:
    seeker = await make_profile("Asha", lat=None)
    with pytest.raises(PreconditionFailed):
        await discovery.find_candidates(seeker.id, 1, 20, 50)


@pytest.mark.asyncio
async def test_rejects_bad_paging_and_unknown_seeker(discovery, make_profile) -> None:
    seeker = await make_profile("Asha")
    with pytest.raises(ValidationFailed):
        await discovery.find_candidates(seeker.id, 0, 20, 50)
    with pytest.raises(ValidationFailed):
        await discovery.find_candidates(seeker.id, 1, 101, 50)
    with pytest.raises(ValidationFailed):
        await discovery.find_candidates(seeker.id, 1, 20, 0)

    with pytest.raises(NotFound):
        await discovery.find_candidates(ObjectId(), 1, 20, 50)

from __future__ import annotations

from datetime import date, timedelta

import pytest
from bson import ObjectId

from kindred.errors import AlreadyExists, Forbidden, InvalidOperation, NotFound, ValidationFailed
from kindred.models.profile import LoginRequest, ProfilePatch, SignupRequest
from kindred.services.profile_service import get_profile_service


@pytest.fixture
def profile_service(db):
    return get_profile_service()


def _signup(**overrides) -> SignupRequest:
    data = {
        "name": "Meera",
        "email": "Meera@Example.com",
        "password": "secret123",
        "gender": "female",
        "dob": date(1996, 2, 10),
        "latitude": 12.97,
        "longitude": 77.59,
    }
    data.update(overrides)
    return SignupRequest(**data)


@pytest.mark.asyncio
async def test_register_and_authenticate(profile_service) -> None:
    created = await profile_service.register(_signup())

    assert created.email == "meera@example.com"
    assert created.password_hash != "secret123"
    assert created.location.latitude == 12.97
    assert created.profile_completed is False
    assert created.age >= 18

    logged_in = await profile_service.authenticate(LoginRequest(email="meera@example.com", password="secret123"))
    assert logged_in.id == created.id

    with pytest.raises(Forbidden):
        await profile_service.authenticate(LoginRequest(email="meera@example.com", password="wrong-pass"))
    with pytest.raises(Forbidden):
        await profile_service.authenticate(LoginRequest(email="nobody@example.com", password="secret123"))


@pytest.mark.asyncio
async def test_register_rejects_minors_and_duplicates(profile_service) -> None:
    too_young = date.today() - timedelta(days=17 * 365)
    with pytest.raises(ValidationFailed):
        await profile_service.register(_signup(dob=too_young))

    await profile_service.register(_signup(phone="+91 98765 43210"))
    with pytest.raises(AlreadyExists):
        await profile_service.register(_signup(email="meera@example.com"))
    with pytest.raises(AlreadyExists):
        await profile_service.register(_signup(email="other@example.com", phone="+91 98765 43210"))

    # Profiles without a phone never collide on it.
    await profile_service.register(_signup(email="a@example.com"))
    await profile_service.register(_signup(email="b@example.com"))


@pytest.mark.asyncio
async def test_tokens_resolve_to_profiles(profile_service) -> None:
    created = await profile_service.register(_signup())
    token = profile_service.issue_token(created.id)

    resolved = await profile_service.get_profile_from_token(token)
    assert resolved is not None and resolved.id == created.id
    assert await profile_service.get_profile_from_token("not-a-token") is None
    assert await profile_service.get_profile_from_token("") is None


@pytest.mark.asyncio
async def test_profile_edits_and_photos(profile_service) -> None:
    created = await profile_service.register(_signup())

    updated = await profile_service.update_profile(
        created.id,
        ProfilePatch(bio="Coffee and hikes", interests=["hiking", "coffee", "hiking", "  "]),
    )
    assert updated.bio == "Coffee and hikes"
    assert updated.interests == ["hiking", "coffee"]

    with_photo = await profile_service.add_photo(created.id, "https://img.example.com/1.jpg")
    assert with_photo.profile_completed is True
    with pytest.raises(ValidationFailed):
        await profile_service.add_photo(created.id, "ftp://img.example.com/2.jpg")
    with pytest.raises(ValidationFailed):
        await profile_service.remove_photo(created.id, 3)

    without_photo = await profile_service.remove_photo(created.id, 0)
    assert without_photo.photos == []
    assert without_photo.profile_completed is False

    moved = await profile_service.update_location(created.id, 19.07, 72.87)
    assert moved.location.coordinates == [72.87, 19.07]
    with pytest.raises(ValidationFailed):
        await profile_service.update_location(created.id, 91.0, 0.0)


@pytest.mark.asyncio
async def test_photo_limit(profile_service, make_profile) -> None:
    full = await make_profile("Full", photos=[f"https://img.example.com/{i}.jpg" for i in range(9)])
    with pytest.raises(ValidationFailed):
        await profile_service.add_photo(full.id, "https://img.example.com/10.jpg")


@pytest.mark.asyncio
async def test_photo_added_during_removal_is_kept(profile_service, make_profile, monkeypatch) -> None:
    urls = [f"https://img.example.com/{i}.jpg" for i in range(3)]
    owner = await make_profile("Owner", photos=urls[:2])
    repository = profile_service._repository
    original_replace = repository.replace_photos
    calls = []

    async def _add_then_replace(*args, **kwargs):
        if not calls:
            await repository.push_photo(owner.id, urls[2], 1)
        calls.append(args)
        return await original_replace(*args, **kwargs)

    monkeypatch.setattr(repository, "replace_photos", _add_then_replace)

    updated = await profile_service.remove_photo(owner.id, 0)

    assert len(calls) == 2
    assert updated.photos == urls[1:]


@pytest.mark.asyncio
async def test_replace_photos_requires_unchanged_list(profiles, make_profile) -> None:
    owner = await make_profile("Owner", photos=["https://img.example.com/a.jpg"])
    await profiles.push_photo(owner.id, "https://img.example.com/b.jpg", 1)

    assert await profiles.replace_photos(owner.id, ["https://img.example.com/a.jpg"], [], 2) is None
    stored = await profiles.get_by_id(owner.id)
    assert stored.photos == ["https://img.example.com/a.jpg", "https://img.example.com/b.jpg"]


@pytest.mark.asyncio
async def test_block_maintains_inverse_pair_and_ends_match(
    profile_service, matching, make_profile, profiles, match_repo
) -> None:
    alice = await make_profile("Alice")
    bob = await make_profile("Bob")
    await matching.like(alice.id, bob.id)
    result = await matching.like(bob.id, alice.id)

    await profile_service.block(alice.id, bob.id)

    stored_alice = await profiles.get_by_id(alice.id)
    stored_bob = await profiles.get_by_id(bob.id)
    assert stored_alice.blocked == [bob.id]
    assert stored_bob.blocked_by == [alice.id]
    assert stored_alice.likes == [] and stored_bob.likes == []
    assert stored_alice.matches == [] and stored_bob.matches == []
    assert (await match_repo.get_by_id(result.match.id)).is_active is False

    blocked = await profile_service.list_blocked(alice.id)
    assert [summary.id for summary in blocked] == [bob.id]

    await profile_service.unblock(alice.id, bob.id)
    assert (await profiles.get_by_id(alice.id)).blocked == []
    assert (await profiles.get_by_id(bob.id)).blocked_by == []

    with pytest.raises(InvalidOperation):
        await profile_service.block(alice.id, alice.id)
    with pytest.raises(NotFound):
        await profile_service.block(alice.id, ObjectId())

from __future__ import annotations

import pytest

from kindred.repositories.exceptions import NotFoundRepositoryError
from kindred.repositories.match import MatchRepository


async def _signup(api_client, name: str, email: str, lat: float, lon: float) -> tuple[str, dict]:
    response = await api_client.post(
        "/api/auth/signup",
        json={
            "name": name,
            "email": email,
            "password": "secret123",
            "gender": "female",
            "dob": "1994-08-21",
            "latitude": lat,
            "longitude": lon,
        },
    )
    assert response.status_code == 201, response.text
    payload = response.json()
    return payload["token"], payload["user"]


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_signup_login_and_me(api_client) -> None:
    token, user = await _signup(api_client, "Nisha", "nisha@example.com", 12.97, 77.59)
    assert user["email"] == "nisha@example.com"
    assert user["profileCompleted"] is False
    assert "passwordHash" not in user

    login = await api_client.post(
        "/api/auth/login",
        json={"email": "nisha@example.com", "password": "secret123"},
    )
    assert login.status_code == 200
    assert login.json()["user"]["id"] == user["id"]

    me = await api_client.get("/api/auth/me", headers=_bearer(token))
    assert me.status_code == 200
    assert me.json()["name"] == "Nisha"

    bad = await api_client.post(
        "/api/auth/login",
        json={"email": "nisha@example.com", "password": "nope-nope"},
    )
    assert bad.status_code == 403
    assert bad.json() == {"detail": "invalid credentials", "kind": "forbidden"}


@pytest.mark.asyncio
async def test_protected_routes_need_a_token(api_client) -> None:
    missing = await api_client.get("/api/users/profile")
    assert missing.status_code == 401

    invalid = await api_client.get("/api/discovery", headers=_bearer("garbage"))
    assert invalid.status_code == 401


@pytest.mark.asyncio
async def test_signup_validation_errors(api_client) -> None:
    minor = await api_client.post(
        "/api/auth/signup",
        json={
            "name": "Kid",
            "email": "kid@example.com",
            "password": "secret123",
            "gender": "male",
            "dob": "2020-01-01",
        },
    )
    assert minor.status_code == 400
    assert minor.json()["kind"] == "validation_failed"

    malformed = await api_client.post("/api/auth/signup", json={"name": "X"})
    assert malformed.status_code == 400
    assert malformed.json()["kind"] == "validation_failed"

    await _signup(api_client, "Nisha", "nisha@example.com", 12.97, 77.59)
    duplicate = await api_client.post(
        "/api/auth/signup",
        json={
            "name": "Nisha Two",
            "email": "NISHA@example.com",
            "password": "secret123",
            "gender": "female",
            "dob": "1994-08-21",
        },
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["kind"] == "already_exists"


@pytest.mark.asyncio
async def test_discover_match_and_chat_flow(api_client) -> None:
    token_a, user_a = await _signup(api_client, "Asha", "asha@example.com", 12.97, 77.59)
    token_b, user_b = await _signup(api_client, "Bela", "bela@example.com", 12.93, 77.61)

    no_photos = await api_client.get("/api/discovery", headers=_bearer(token_a))
    assert no_photos.json()["users"] == []

    for token in (token_a, token_b):
        resp = await api_client.post(
            "/api/users/photos",
            json={"photoUrl": "https://img.example.com/p.jpg"},
            headers=_bearer(token),
        )
        assert resp.status_code == 200
        assert resp.json()["profileCompleted"] is True

    discovered = await api_client.get(
        "/api/discovery",
        params={"maxDistance": 50, "limit": 10},
        headers=_bearer(token_a),
    )
    assert discovered.status_code == 200, discovered.text
    users = discovered.json()["users"]
    assert [u["id"] for u in users] == [user_b["id"]]
    assert users[0]["distance"] == 4.9

    first = await api_client.post(
        "/api/discovery/like",
        json={"targetUserId": user_b["id"]},
        headers=_bearer(token_a),
    )
    assert first.json() == {"isMatch": False, "match": None}

    again = await api_client.post(
        "/api/discovery/like",
        json={"targetUserId": user_b["id"]},
        headers=_bearer(token_a),
    )
    assert again.status_code == 409

    second = await api_client.post(
        "/api/discovery/like",
        json={"targetUserId": user_a["id"]},
        headers=_bearer(token_b),
    )
    body = second.json()
    assert body["isMatch"] is True
    match_id = body["match"]["id"]

    listed = await api_client.get("/api/matches", headers=_bearer(token_a))
    assert [m["id"] for m in listed.json()["matches"]] == [match_id]
    assert listed.json()["matches"][0]["otherUser"]["id"] == user_b["id"]

    sent = await api_client.post(
        f"/api/chats/{match_id}",
        json={"message": "Hi Bela!"},
        headers=_bearer(token_a),
    )
    assert sent.status_code == 201
    assert sent.json()["message"]["messageType"] == "text"

    unread = await api_client.get("/api/chats/unread/count", headers=_bearer(token_b))
    assert unread.json() == {"unreadCounts": {match_id: 1}, "totalUnread": 1}

    history = await api_client.get(f"/api/chats/{match_id}", headers=_bearer(token_b))
    assert [m["message"] for m in history.json()["messages"]] == ["Hi Bela!"]

    unread_after = await api_client.get("/api/chats/unread/count", headers=_bearer(token_b))
    assert unread_after.json()["totalUnread"] == 0

    stats = await api_client.get("/api/matches/stats/overview", headers=_bearer(token_a))
    assert stats.json()["stats"]["totalMatches"] == 1

    unmatched = await api_client.delete(f"/api/matches/{match_id}", headers=_bearer(token_a))
    assert unmatched.status_code == 200

    after = await api_client.post(
        f"/api/chats/{match_id}",
        json={"message": "Still there?"},
        headers=_bearer(token_b),
    )
    assert after.status_code == 404
    assert after.json()["kind"] == "not_found"


@pytest.mark.asyncio
async def test_discovery_requires_location(api_client) -> None:
    response = await api_client.post(
        "/api/auth/signup",
        json={
            "name": "Nomad",
            "email": "nomad@example.com",
            "password": "secret123",
            "gender": "other",
            "dob": "1990-01-01",
        },
    )
    token = response.json()["token"]

    discovered = await api_client.get("/api/discovery", headers=_bearer(token))
    assert discovered.status_code == 400
    assert discovered.json() == {"detail": "location required", "kind": "precondition_failed"}


@pytest.mark.asyncio
async def test_malformed_ids_are_validation_errors(api_client) -> None:
    token, _ = await _signup(api_client, "Asha", "asha@example.com", 12.97, 77.59)

    response = await api_client.get("/api/matches/not-an-id", headers=_bearer(token))
    assert response.status_code == 400
    assert response.json()["kind"] == "validation_failed"

    block = await api_client.post("/api/users/block/123", headers=_bearer(token))
    assert block.status_code == 400


@pytest.mark.asyncio
async def test_health_endpoint(api_client) -> None:
    response = await api_client.get("/api/health/db")
    assert response.status_code == 200
    assert response.json()["mongo"] == "connected"


@pytest.mark.asyncio
async def test_repository_failures_use_the_error_envelope(api_client, monkeypatch) -> None:
    token_a, user_a = await _signup(api_client, "Asha", "asha@example.com", 12.97, 77.59)
    token_b, user_b = await _signup(api_client, "Bela", "bela@example.com", 12.93, 77.61)

    async def _vanished(*_args, **_kwargs):
        raise NotFoundRepositoryError("match vanished during creation")

    monkeypatch.setattr(MatchRepository, "ensure_active", _vanished)

    await api_client.post(
        "/api/discovery/like",
        json={"targetUserId": user_b["id"]},
        headers=_bearer(token_a),
    )
    response = await api_client.post(
        "/api/discovery/like",
        json={"targetUserId": user_a["id"]},
        headers=_bearer(token_b),
    )

    assert response.status_code == 500
    assert response.json() == {"detail": "server error", "kind": "internal"}

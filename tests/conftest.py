from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime, timezone
import time
from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from kindred.main import app
from kindred.config import get_settings
from kindred.db import close_mongo_connection, connect_to_mongo, get_db
from kindred.models.profile import GeoPoint, ProfileDocument
from kindred.repositories import MatchRepository, MessageRepository, ProfileRepository
from kindred.services.conversation_service import ConversationService
from kindred.services.discovery_service import DiscoveryService
from kindred.services.matching_service import MatchingService


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "kindred-test")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("GEO_INDEX_ENABLED", "false")
    monkeypatch.setenv("REDIS_PUBSUB_ENABLED", "false")
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("kindred.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest_asyncio.fixture
async def db(mongo_client: AsyncMongoMockClient):
    await connect_to_mongo()
    yield get_db()
    await close_mongo_connection()


@pytest_asyncio.fixture
async def api_client(db) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def profiles(db) -> ProfileRepository:
    return ProfileRepository(db)


@pytest.fixture
def match_repo(db) -> MatchRepository:
    return MatchRepository(db)


@pytest.fixture
def message_repo(db) -> MessageRepository:
    return MessageRepository(db)


@pytest.fixture
def created_events() -> list:
    return []


@pytest.fixture
def matching(profiles, match_repo, created_events) -> MatchingService:
    async def _capture(event) -> None:
        created_events.append(event)

    return MatchingService(profiles, match_repo, on_match=_capture)


@pytest.fixture
def discovery(profiles) -> DiscoveryService:
    return DiscoveryService(profiles, use_geo_index=False)


@pytest.fixture
def conversations(message_repo, match_repo) -> ConversationService:
    return ConversationService(message_repo, match_repo)


MakeProfile = Callable[..., Awaitable[ProfileDocument]]


@pytest.fixture
def make_profile(profiles: ProfileRepository) -> MakeProfile:
    """Insert a complete, discoverable profile straight through the repository."""

    counter = {"n": 0}

    async def _make(
        name: str = "Alex",
        *,
        lat: Optional[float] = 12.97,
        lon: Optional[float] = 77.59,
        photos: Optional[list[str]] = None,
        **updates: Any,
    ) -> ProfileDocument:
        counter["n"] += 1
        now_ms = int(time.time() * 1000)
        profile = await profiles.create_profile(
            name=name,
            email=f"{name.lower()}{counter['n']}@example.com",
            password_hash="hash",
            gender="female",
            dob=datetime(1995, 6, 15, tzinfo=timezone.utc),
            created_at=now_ms,
            location=GeoPoint.from_lat_lon(lat, lon) if lat is not None else None,
        )
        fields = {"photos": ["https://img.example.com/a.jpg"] if photos is None else photos}
        fields.update(updates)
        return await profiles.update_profile(profile.id, fields)

    return _make

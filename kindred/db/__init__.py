import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from ..config import get_settings
from .mongo import ensure_match_indexes, ensure_message_indexes, ensure_profile_indexes

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


async def _ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    logger = logging.getLogger("uvicorn.error")
    for label, ensure in (
        ("users", ensure_profile_indexes),
        ("matches", ensure_match_indexes),
        ("messages", ensure_message_indexes),
    ):
        try:
            await ensure(db)
        except Exception as exc:  # pragma: no cover - best-effort logging
            logger.error("Failed to ensure %s indexes: %s", label, exc)


async def connect_to_mongo() -> None:
    """Initialise the shared MongoDB client and application database."""

    global _client, _db

    settings = get_settings()
    if not settings.mongo_uri and not settings.mongo_alt_uri:
        raise RuntimeError("Missing MONGO_URI env var for kindred")

    logger = logging.getLogger("uvicorn.error")

    async def _try_connect(uri: str) -> tuple[AsyncIOMotorClient, AsyncIOMotorDatabase]:
        client = AsyncIOMotorClient(
            uri,
            maxPoolSize=20,
            serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
            connectTimeoutMS=settings.mongo_connect_timeout_ms,
            socketTimeoutMS=settings.mongo_socket_timeout_ms,
            **({"directConnection": True} if settings.mongo_direct else {}),
        )
        db = client[settings.mongo_db]

        await client.admin.command("ping")
        await _ensure_indexes(db)

        return client, db

    primary_error: Optional[Exception] = None

    try:
        _client, _db = await _try_connect(settings.mongo_uri)
        addr = getattr(_client, "address", None)
        if addr:
            logger.info("MongoDB connected: db=%s, primary=%s:%s", settings.mongo_db, addr[0], addr[1])
        else:
            logger.info("MongoDB connected: db=%s", settings.mongo_db)
        return
    except Exception as exc:  # pragma: no cover - connection issues
        primary_error = exc
        logger.error("Mongo primary URI failed: %s", exc)

    if settings.mongo_alt_uri:
        try:
            _client, _db = await _try_connect(settings.mongo_alt_uri)
            logger.info("MongoDB connected via ALT URI: db=%s", settings.mongo_db)
            return
        except Exception as exc:  # pragma: no cover - same as above
            logger.error("Mongo ALT URI failed: %s", exc)

    raise primary_error or RuntimeError("Mongo connection failed")


async def close_mongo_connection() -> None:
    """Close the MongoDB client if it is initialised."""

    global _client, _db
    if _client:
        try:
            _client.close()
        finally:
            logging.getLogger("uvicorn.error").info("MongoDB connection closed")
        _client = None
        _db = None


def get_db() -> AsyncIOMotorDatabase:
    if _db is None:
        raise RuntimeError("MongoDB not connected. Did you call connect_to_mongo()?")
    return _db


def is_connected() -> bool:
    return _client is not None and _db is not None


__all__ = [
    "connect_to_mongo",
    "close_mongo_connection",
    "get_db",
    "is_connected",
]

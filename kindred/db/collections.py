"""MongoDB collection names used by the service."""

from __future__ import annotations

PROFILES_COLLECTION = "users"
MATCHES_COLLECTION = "matches"
MESSAGES_COLLECTION = "messages"

__all__ = [
    "PROFILES_COLLECTION",
    "MATCHES_COLLECTION",
    "MESSAGES_COLLECTION",
]

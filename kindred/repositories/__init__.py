"""Repository layer to abstract MongoDB access patterns."""

from .match import MatchRepository
from .message import MessageRepository
from .profile import ProfileRepository

__all__ = ["MatchRepository", "MessageRepository", "ProfileRepository"]

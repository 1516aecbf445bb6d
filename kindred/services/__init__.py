from .conversation_service import ConversationService, get_conversation_service
from .discovery_service import DiscoveryService, get_discovery_service
from .matching_service import MatchingService, get_matching_service
from .profile_service import ProfileService, get_profile_service

__all__ = [
    "ConversationService",
    "DiscoveryService",
    "MatchingService",
    "ProfileService",
    "get_conversation_service",
    "get_discovery_service",
    "get_matching_service",
    "get_profile_service",
]

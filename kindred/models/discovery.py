from typing import List

from pydantic import BaseModel, Field

from .match import Pagination
from .profile import ProfileSummary


class DiscoveryCandidate(ProfileSummary):
    """A profile card annotated with its distance from the seeker in km."""

    distance: float


class DiscoveryPage(BaseModel):
    users: List[DiscoveryCandidate] = Field(default_factory=list)
    pagination: Pagination


__all__ = ["DiscoveryCandidate", "DiscoveryPage"]

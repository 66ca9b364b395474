"""Repository layer to abstract MongoDB access patterns."""

from .discovery import DiscoveryFeed, MongoDiscoveryFeed
from .session_state import SessionStateRepository

__all__ = ["DiscoveryFeed", "MongoDiscoveryFeed", "SessionStateRepository"]

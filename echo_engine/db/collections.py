"""MongoDB collection names used by the echo engine."""

from __future__ import annotations

SWIPE_LIMITS_COLLECTION = "swipe_limits"
SWIPE_HISTORY_COLLECTION = "swipe_history"
SWIPE_STATS_COLLECTION = "swipe_stats"
MATCHES_COLLECTION = "matches"
ENTITLEMENTS_COLLECTION = "entitlements"
DISCOVERY_QUEUES_COLLECTION = "discovery_queues"
DATING_PROFILES_COLLECTION = "dating_profiles"
LIKES_COLLECTION = "likes"

# one document per user, replaced wholesale on every write
SESSION_STATE_COLLECTIONS = (
    SWIPE_LIMITS_COLLECTION,
    SWIPE_HISTORY_COLLECTION,
    SWIPE_STATS_COLLECTION,
    MATCHES_COLLECTION,
    ENTITLEMENTS_COLLECTION,
    DISCOVERY_QUEUES_COLLECTION,
)

__all__ = [
    "DATING_PROFILES_COLLECTION",
    "DISCOVERY_QUEUES_COLLECTION",
    "ENTITLEMENTS_COLLECTION",
    "LIKES_COLLECTION",
    "MATCHES_COLLECTION",
    "SESSION_STATE_COLLECTIONS",
    "SWIPE_HISTORY_COLLECTION",
    "SWIPE_LIMITS_COLLECTION",
    "SWIPE_STATS_COLLECTION",
]

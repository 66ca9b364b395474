from .echo_status import EchoStatus, days_until_expiration, is_discoverable, status
from .match_service import MatchLifecycleManager
from .resonance_service import RESONANCE_RANGE_KM, ResonanceProximityEngine, distance_km
from .swipe_limits import SwipeLimitTracker
from .swipe_service import SwipeDecisionProcessor

__all__ = [
    "EchoStatus",
    "MatchLifecycleManager",
    "RESONANCE_RANGE_KM",
    "ResonanceProximityEngine",
    "SwipeDecisionProcessor",
    "SwipeLimitTracker",
    "days_until_expiration",
    "distance_km",
    "is_discoverable",
    "status",
]

# Export all models for easy importing
from findr.models.user import User, Profile, Role, Commitment
from findr.models.match import Swipe, Match, SwipeAction, MatchStatus

__all__ = [
    "User",
    "Profile",
    "Role",
    "Commitment",
    "Swipe",
    "Match",
    "SwipeAction",
    "MatchStatus",
]

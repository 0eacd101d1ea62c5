from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from findr.schemas.profile import ProfileOwner, ProfileResponse, ProfileWithOwner


# ==================== Swipe Schemas ====================

class SwipeCreate(BaseModel):
    """Schema for creating a swipe."""
    target_id: str = Field(..., min_length=1, max_length=36)
    action: str = Field(..., pattern="^(like|pass|super_like)$")


class SwipeResult(BaseModel):
    """Outcome of a swipe."""
    success: bool = True
    is_match: bool = False
    match_id: Optional[str] = None


# ==================== Match Schemas ====================

class MatchResponse(BaseModel):
    """Schema for match response."""
    id: str
    user1_id: str
    user2_id: str
    status: str
    unmatched_by: Optional[str]
    matched_at: datetime
    last_interaction: Optional[datetime]

    class Config:
        from_attributes = True


class MatchWithUser(BaseModel):
    """Match with the counterpart's account and profile."""
    match: MatchResponse
    matched_user: ProfileOwner
    matched_profile: Optional[ProfileResponse]
    is_online: bool = False


class MatchListResponse(BaseModel):
    """List of matches."""
    matches: List[MatchWithUser]
    total: int


class UnmatchResponse(BaseModel):
    success: bool = True


# ==================== Discover Schemas ====================

class DiscoverResponse(BaseModel):
    """Response for discover endpoint."""
    profiles: List[ProfileWithOwner]
    total: int

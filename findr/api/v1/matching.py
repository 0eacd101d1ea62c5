from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from findr.config import settings
from findr.db.session import get_db
from findr.db.redis import RedisService
from findr.core.dependencies import get_current_user, get_redis_service
from findr.models.user import User
from findr.schemas.match import (
    SwipeCreate,
    SwipeResult,
    MatchResponse,
    MatchWithUser,
    MatchListResponse,
    UnmatchResponse,
    DiscoverResponse,
)
from findr.schemas.profile import ProfileOwner, ProfileResponse, ProfileWithOwner
from findr.services import match_directory
from findr.services.discovery import next_candidates
from findr.services.match_resolver import evaluate_swipe


router = APIRouter(prefix="/matching", tags=["Matching"])


async def to_match_with_user(entry: match_directory.MatchEntry, redis: RedisService) -> MatchWithUser:
    return MatchWithUser(
        match=MatchResponse.model_validate(entry.match),
        matched_user=ProfileOwner.model_validate(entry.user),
        matched_profile=ProfileResponse.model_validate(entry.profile) if entry.profile else None,
        is_online=await redis.is_online(entry.user.id),
    )


@router.get("/discover", response_model=DiscoverResponse)
async def discover_profiles(
    limit: int = Query(settings.DISCOVER_DEFAULT_LIMIT, ge=1, le=settings.DISCOVER_MAX_LIMIT),
    role: Optional[str] = Query(None, pattern="^(technical|non-technical|hybrid)$"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get profiles to swipe on (discover deck).
    Excludes own profile, paused profiles and anyone already swiped on.
    """
    rows = await next_candidates(db, current_user.id, limit=limit, role=role)
    profiles = [ProfileWithOwner.from_rows(profile, owner) for profile, owner in rows]
    return DiscoverResponse(profiles=profiles, total=len(profiles))


@router.post("/swipe", response_model=SwipeResult)
async def swipe(
    swipe_data: SwipeCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Record a swipe (like, pass, or super_like).
    If mutual like, creates a match.
    """
    return await evaluate_swipe(db, current_user.id, swipe_data.target_id, swipe_data.action)


@router.get("/matches", response_model=MatchListResponse)
async def get_matches(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis_service),
):
    """Get all active matches for current user, newest first."""
    entries = await match_directory.list_matches(db, current_user.id)
    matches = [await to_match_with_user(entry, redis) for entry in entries]
    return MatchListResponse(matches=matches, total=len(matches))


@router.get("/matches/{match_id}", response_model=MatchWithUser)
async def get_match(
    match_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis_service),
):
    """Get one of the current user's matches."""
    entry = await match_directory.get_match(db, match_id, current_user.id)
    return await to_match_with_user(entry, redis)


@router.delete("/matches/{match_id}", response_model=UnmatchResponse)
async def unmatch(
    match_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Unmatch from a user."""
    await match_directory.unmatch(db, match_id, current_user.id)
    return UnmatchResponse(success=True)

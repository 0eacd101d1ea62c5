from fastapi import APIRouter, Depends, Response, status
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from findr.db.session import get_db
from findr.db.redis import RedisService
from findr.core.dependencies import get_current_user, get_redis_service
from findr.models.user import User
from findr.schemas.profile import (
    ProfileUpsert,
    ProfileActiveUpdate,
    GithubRefreshRequest,
    ProfileResponse,
    ProfileWithOwner,
)
from findr.services import profiles as profile_service
from findr.services.github import refresh_github_stats


router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get current user's profile."""
    return await profile_service.get_my_profile(db, current_user.id)


@router.put("/me", response_model=ProfileResponse)
async def create_or_update_profile(
    profile_data: ProfileUpsert,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create the profile on first submission, replace it afterwards."""
    return await profile_service.create_or_update_profile(db, current_user.id, profile_data)


@router.patch("/me/active", response_model=ProfileResponse)
async def toggle_profile_active(
    payload: ProfileActiveUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Pause or resume matching."""
    return await profile_service.toggle_profile_active(db, current_user.id, payload.is_active)


@router.post("/me/ping", status_code=status.HTTP_204_NO_CONTENT)
async def update_last_active(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis_service),
):
    """Activity ping from the client. Always succeeds for a logged-in caller."""
    await profile_service.update_last_active(db, current_user.id, redis)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/me/github/refresh", response_model=ProfileResponse)
async def refresh_github(
    payload: Optional[GithubRefreshRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: RedisService = Depends(get_redis_service),
):
    """Refresh cached GitHub stats, optionally linking a new username."""
    github_username = payload.github_username if payload else None
    return await refresh_github_stats(db, current_user.id, redis, github_username)


@router.get("/{user_id}", response_model=ProfileWithOwner)
async def get_user_profile(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get another user's profile."""
    profile, owner = await profile_service.get_profile(db, user_id)
    return ProfileWithOwner.from_rows(profile, owner)

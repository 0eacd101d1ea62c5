import logging
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from findr.core.exceptions import AuthenticationRequired, NotFound
from findr.db.redis import RedisService
from findr.db.session import utcnow
from findr.models.user import Profile, User
from findr.schemas.profile import ProfileUpsert


logger = logging.getLogger(__name__)


def _require_user(user_id: str, message: str = "You need to be logged in") -> None:
    if not user_id:
        raise AuthenticationRequired(message)


async def find_profile(db: AsyncSession, user_id: str) -> Optional[Profile]:
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


def _apply(profile: Profile, data: ProfileUpsert) -> None:
    profile.bio = data.bio
    profile.role = data.role
    profile.skills = list(data.skills)
    profile.looking_for = list(data.looking_for)
    profile.project_ideas = list(data.project_ideas)
    profile.interests = list(data.interests)
    profile.commitment = data.commitment


async def create_or_update_profile(db: AsyncSession, user_id: str, data: ProfileUpsert) -> Profile:
    """Upsert the caller's profile. List fields are replaced, not merged."""
    _require_user(user_id, "You need to be logged in to create a profile")

    profile = await find_profile(db, user_id)

    if profile is None:
        profile = Profile(user_id=user_id)
        _apply(profile, data)
        try:
            async with db.begin_nested():
                db.add(profile)
        except IntegrityError:
            # Double submit: another request created it first
            profile = await find_profile(db, user_id)
            if profile is None:
                raise
        else:
            await db.commit()
            logger.info("Profile created", extra={"user_id": user_id, "profile_id": profile.id})
            return profile

    _apply(profile, data)
    profile.updated_at = utcnow()
    await db.commit()
    return profile


async def get_my_profile(db: AsyncSession, user_id: str) -> Profile:
    _require_user(user_id)

    profile = await find_profile(db, user_id)
    if profile is None:
        raise NotFound("Profile not found. Please create a profile first.")
    return profile


async def get_profile(db: AsyncSession, user_id: str) -> Tuple[Profile, User]:
    """Another user's profile together with their account."""
    result = await db.execute(
        select(Profile, User)
        .join(User, Profile.user_id == User.id)
        .where(Profile.user_id == user_id)
    )
    row = result.first()
    if row is None:
        raise NotFound("Profile not found.")
    profile, user = row
    return profile, user


async def toggle_profile_active(db: AsyncSession, user_id: str, is_active: bool) -> Profile:
    """Pause or resume appearing in other users' discovery."""
    profile = await get_my_profile(db, user_id)

    profile.is_active = is_active
    profile.updated_at = utcnow()
    await db.commit()
    return profile


async def update_last_active(
    db: AsyncSession,
    user_id: str,
    redis: Optional[RedisService] = None,
) -> None:
    """Activity ping. Never raises."""
    if not user_id:
        return

    try:
        await db.execute(
            update(Profile)
            .where(Profile.user_id == user_id)
            .values(last_active=utcnow())
        )
        await db.commit()
    except Exception as e:
        logger.warning("Last-active update failed", extra={"user_id": user_id, "error": str(e)})
        try:
            await db.rollback()
        except Exception as rollback_error:
            logger.warning(
                "Rollback after last-active failure failed",
                extra={"user_id": user_id, "error": str(rollback_error)},
            )

    if redis is None:
        return

    try:
        await redis.set_online(user_id)
    except Exception as e:
        logger.warning("Presence update failed", extra={"user_id": user_id, "error": str(e)})

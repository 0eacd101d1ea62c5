from typing import List, Optional, Tuple

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from findr.config import settings
from findr.core.exceptions import AuthenticationRequired, InvalidOperation
from findr.models.match import Swipe
from findr.models.user import Profile, Role, User


def resolve_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.DISCOVER_DEFAULT_LIMIT
    if limit < 1:
        raise InvalidOperation("Limit must be at least 1")
    return min(limit, settings.DISCOVER_MAX_LIMIT)


async def next_candidates(
    db: AsyncSession,
    user_id: str,
    limit: Optional[int] = None,
    role: Optional[str] = None,
) -> List[Tuple[Profile, User]]:
    """
    Next batch of profiles for user_id to swipe on.

    Excludes the caller, inactive profiles and anyone the caller already
    swiped on (any action). Highest GitHub score first, most recently active
    breaking ties. Each call is a fresh top-N; an empty list means the deck
    is exhausted.
    """
    if not user_id:
        raise AuthenticationRequired("You need to be logged in to discover profiles")

    limit = resolve_limit(limit)

    swiped_ids = select(Swipe.target_id).where(Swipe.swiper_id == user_id)

    conditions = [
        Profile.is_active.is_(True),
        User.is_active.is_(True),
        Profile.user_id != user_id,
        Profile.user_id.not_in(swiped_ids),
    ]
    if role is not None:
        try:
            conditions.append(Profile.role == Role(role).value)
        except ValueError:
            raise InvalidOperation(f"Unknown role: {role}")

    query = (
        select(Profile, User)
        .join(User, Profile.user_id == User.id)
        .where(and_(*conditions))
        .order_by(
            Profile.github_score.desc().nulls_last(),
            Profile.last_active.desc().nulls_last(),
            Profile.id,
        )
        .limit(limit)
    )

    result = await db.execute(query)
    return [(profile, user) for profile, user in result.all()]

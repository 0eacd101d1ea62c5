import logging
from typing import List, NamedTuple, Optional

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from findr.core.exceptions import AuthenticationRequired, InvalidOperation, NotFound
from findr.models.match import Match, MatchStatus
from findr.models.user import Profile, User


logger = logging.getLogger(__name__)


class MatchEntry(NamedTuple):
    match: Match
    user: User
    profile: Optional[Profile]


async def _load_counterparts(db: AsyncSession, user_ids: List[str]) -> dict:
    result = await db.execute(
        select(User, Profile)
        .outerjoin(Profile, Profile.user_id == User.id)
        .where(User.id.in_(user_ids))
    )
    return {user.id: (user, profile) for user, profile in result.all()}


async def _get_participant_match(db: AsyncSession, match_id: str, user_id: str) -> Match:
    if not user_id:
        raise AuthenticationRequired()

    match = await db.get(Match, match_id)
    if match is None:
        raise NotFound("Match not found")

    if not match.involves(user_id):
        raise InvalidOperation("You are not part of this match")

    return match


async def list_matches(db: AsyncSession, user_id: str) -> List[MatchEntry]:
    """Active matches for user_id, most recent first."""
    if not user_id:
        raise AuthenticationRequired("You need to be logged in to view matches")

    result = await db.execute(
        select(Match)
        .where(
            and_(
                Match.status == MatchStatus.ACTIVE.value,
                or_(
                    Match.user1_id == user_id,
                    Match.user2_id == user_id,
                ),
            )
        )
        .order_by(Match.matched_at.desc())
    )
    matches = result.scalars().all()
    if not matches:
        return []

    counterparts = await _load_counterparts(db, [m.counterpart_of(user_id) for m in matches])

    entries = []
    for match in matches:
        found = counterparts.get(match.counterpart_of(user_id))
        if found is None:
            # Account removed by the auth service
            continue
        user, profile = found
        entries.append(MatchEntry(match=match, user=user, profile=profile))
    return entries


async def get_match(db: AsyncSession, match_id: str, user_id: str) -> MatchEntry:
    """Single match as seen by one of its participants."""
    match = await _get_participant_match(db, match_id, user_id)

    counterparts = await _load_counterparts(db, [match.counterpart_of(user_id)])
    found = counterparts.get(match.counterpart_of(user_id))
    if found is None:
        raise NotFound("Matched user not found")

    user, profile = found
    return MatchEntry(match=match, user=user, profile=profile)


async def unmatch(db: AsyncSession, match_id: str, user_id: str) -> Match:
    """
    End a match. Only participants may do this.
    Calling it on an already unmatched match is a no-op; unmatched_by keeps
    whoever ended it first.
    """
    match = await _get_participant_match(db, match_id, user_id)

    if match.status == MatchStatus.UNMATCHED.value:
        return match

    match.status = MatchStatus.UNMATCHED.value
    match.unmatched_by = user_id
    await db.commit()

    logger.info("Match ended", extra={"match_id": match.id, "unmatched_by": user_id})
    return match

"""
Match resolution.

A swipe is recorded in the ledger and, for likes, checked against the
target's swipe on the actor. When both are positive the pair gets exactly one
Match row, keyed by the canonical (user1_id < user2_id) ordering. Two
reciprocal swipes racing each other are settled by the unique constraint on
that key: the loser catches the violation and returns the winner's row.
"""

import logging
from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from findr.models.match import Match, MatchStatus, Swipe, SwipeAction, POSITIVE_ACTIONS, canonical_pair
from findr.schemas.match import SwipeResult
from findr.services.swipe_ledger import record_swipe


logger = logging.getLogger(__name__)


async def find_match(db: AsyncSession, user_a: str, user_b: str) -> Optional[Match]:
    """Look up the match for an unordered pair, any status."""
    user1_id, user2_id = canonical_pair(user_a, user_b)
    result = await db.execute(
        select(Match).where(
            and_(
                Match.user1_id == user1_id,
                Match.user2_id == user2_id,
            )
        )
    )
    return result.scalar_one_or_none()


async def has_positive_swipe(db: AsyncSession, swiper_id: str, target_id: str) -> bool:
    result = await db.execute(
        select(Swipe.id)
        .where(
            and_(
                Swipe.swiper_id == swiper_id,
                Swipe.target_id == target_id,
                Swipe.action.in_(POSITIVE_ACTIONS),
            )
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def materialize_match(db: AsyncSession, user_a: str, user_b: str) -> Match:
    """Return the pair's match, creating it if none exists yet."""
    existing = await find_match(db, user_a, user_b)
    if existing is not None:
        return existing

    user1_id, user2_id = canonical_pair(user_a, user_b)
    match = Match(
        user1_id=user1_id,
        user2_id=user2_id,
        status=MatchStatus.ACTIVE.value,
    )
    try:
        async with db.begin_nested():
            db.add(match)
    except IntegrityError:
        winner = await find_match(db, user_a, user_b)
        if winner is None:
            raise
        logger.info(
            "Match insert lost race, using existing row",
            extra={"match_id": winner.id, "user1_id": user1_id, "user2_id": user2_id},
        )
        return winner

    logger.info(
        "Match created",
        extra={"match_id": match.id, "user1_id": user1_id, "user2_id": user2_id},
    )
    return match


async def evaluate_swipe(db: AsyncSession, actor_id: str, target_id: str, action: str) -> SwipeResult:
    """
    Record a swipe and report whether it completes a match.

    The swipe and any new match normally land in one commit. When the
    reciprocal like only shows up after our swipe is committed, the match
    follows in a second commit. An existing match that was unmatched is not revived; the swipe is
    recorded and reported as no match.
    """
    swipe = await record_swipe(db, actor_id, target_id, action)

    if swipe.action == SwipeAction.PASS.value:
        await db.commit()
        return SwipeResult(is_match=False)

    if not await has_positive_swipe(db, target_id, actor_id):
        await db.commit()
        # A reciprocal like committed concurrently is only visible after our own commit
        if not await has_positive_swipe(db, target_id, actor_id):
            return SwipeResult(is_match=False)

    match = await materialize_match(db, actor_id, target_id)
    await db.commit()

    if match.status != MatchStatus.ACTIVE.value:
        return SwipeResult(is_match=False)

    return SwipeResult(is_match=True, match_id=match.id)

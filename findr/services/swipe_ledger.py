"""
Swipe ledger: one current action per (swiper, target) pair.

Writes are upserts. The first swipe inserts a row, later swipes on the same
pair overwrite the action and refresh the timestamp.
"""

from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from findr.core.exceptions import AuthenticationRequired, InvalidOperation, NotFound
from findr.db.session import utcnow
from findr.models.match import Swipe, SwipeAction
from findr.models.user import User


def parse_action(action: str) -> SwipeAction:
    try:
        return SwipeAction(action)
    except ValueError:
        raise InvalidOperation(f"Unknown swipe action: {action}")


async def get_swipe(db: AsyncSession, swiper_id: str, target_id: str) -> Optional[Swipe]:
    result = await db.execute(
        select(Swipe).where(
            and_(
                Swipe.swiper_id == swiper_id,
                Swipe.target_id == target_id,
            )
        )
    )
    return result.scalar_one_or_none()


async def record_swipe(db: AsyncSession, actor_id: str, target_id: str, action: str) -> Swipe:
    """
    Persist the actor's current action towards target.
    Flushes but does not commit; the caller owns the transaction.
    """
    if not actor_id:
        raise AuthenticationRequired("You need to be logged in to swipe")

    if actor_id == target_id:
        raise InvalidOperation("Cannot swipe on yourself")

    action = parse_action(action).value

    if await db.get(User, target_id) is None:
        raise NotFound("User not found")

    swipe = await get_swipe(db, actor_id, target_id)

    if swipe is None:
        swipe = Swipe(swiper_id=actor_id, target_id=target_id, action=action)
        try:
            async with db.begin_nested():
                db.add(swipe)
            return swipe
        except IntegrityError:
            # A concurrent first swipe on the same pair committed first
            swipe = await get_swipe(db, actor_id, target_id)
            if swipe is None:
                raise

    swipe.action = action
    swipe.created_at = utcnow()
    await db.flush()
    return swipe

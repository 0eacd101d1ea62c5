from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Index
import enum

from findr.db.session import Base, utcnow
from findr.models.user import new_id


class SwipeAction(str, enum.Enum):
    LIKE = "like"
    PASS = "pass"
    SUPER_LIKE = "super_like"


# Actions that count towards a mutual match
POSITIVE_ACTIONS = (SwipeAction.LIKE.value, SwipeAction.SUPER_LIKE.value)


class MatchStatus(str, enum.Enum):
    ACTIVE = "active"
    UNMATCHED = "unmatched"


class Swipe(Base):
    """Current action of one user towards another. Re-swipes overwrite."""

    __tablename__ = "findr_swipes"

    id = Column(String(36), primary_key=True, default=new_id)
    swiper_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    target_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    action = Column(String(20), nullable=False)  # like, pass, super_like
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("swiper_id", "target_id", name="unique_swipe"),)


class Match(Base):
    """Mutual like between two users, stored with user1_id < user2_id."""

    __tablename__ = "findr_matches"

    id = Column(String(36), primary_key=True, default=new_id)
    user1_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    user2_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(String(20), nullable=False, default=MatchStatus.ACTIVE.value)
    unmatched_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    matched_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_interaction = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="unique_match_pair"),
        CheckConstraint("user1_id < user2_id", name="match_canonical_order"),
        Index("ix_findr_matches_user2_id", "user2_id"),
    )

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def counterpart_of(self, user_id: str) -> str:
        return self.user2_id if self.user1_id == user_id else self.user1_id


def canonical_pair(a: str, b: str) -> tuple[str, str]:
    """Order two user ids so a symmetric pair always maps to one key."""
    return (a, b) if a < b else (b, a)

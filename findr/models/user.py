from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer, Text, JSON
from sqlalchemy.dialects.postgresql import JSONB
import secrets
import uuid
import enum

from findr.db.session import Base, utcnow


# JSONB on PostgreSQL, plain JSON elsewhere
JSONList = JSON().with_variant(JSONB(), "postgresql")


def new_id() -> str:
    return str(uuid.uuid4())


def new_avatar_seed() -> str:
    return secrets.token_urlsafe(16)


class Role(str, enum.Enum):
    TECHNICAL = "technical"
    NON_TECHNICAL = "non-technical"
    HYBRID = "hybrid"


class Commitment(str, enum.Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    WEEKENDS = "weekends"
    FLEXIBLE = "flexible"


class User(Base):
    """Account identity. Rows are owned by the auth service; read-only here."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=True)
    username = Column(String(50), unique=True, nullable=True)
    house = Column(String(50), nullable=True)
    image = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Profile(Base):
    """Matching profile, at most one per user."""

    __tablename__ = "findr_profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    bio = Column(Text, nullable=True)  # max 280 chars, validated in schema
    role = Column(String(20), nullable=False, default=Role.TECHNICAL.value)
    skills = Column(JSONList, default=list)
    looking_for = Column(JSONList, default=list)
    project_ideas = Column(JSONList, default=list)  # max 3
    interests = Column(JSONList, default=list)
    commitment = Column(String(20), default=Commitment.FLEXIBLE.value)

    # GitHub stats (cached, refreshed on demand)
    github_username = Column(String(100), nullable=True)
    github_commits = Column(Integer, default=0)
    github_prs = Column(Integer, default=0)
    github_languages = Column(JSONList, default=list)
    github_score = Column(Integer, default=0, index=True)
    github_updated_at = Column(DateTime(timezone=True), nullable=True)

    avatar_seed = Column(String(64), default=new_avatar_seed)

    is_active = Column(Boolean, default=True, index=True)
    last_active = Column(DateTime(timezone=True), default=utcnow)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime


ROLE_PATTERN = "^(technical|non-technical|hybrid)$"
COMMITMENT_PATTERN = "^(full-time|part-time|weekends|flexible)$"

MAX_BIO_LENGTH = 280
MAX_PROJECT_IDEAS = 3


def clean_list(values: Optional[List[str]]) -> List[str]:
    """Strip entries and drop blanks, keeping order."""
    if not values:
        return []
    cleaned = []
    for value in values:
        value = value.strip()
        if value:
            cleaned.append(value)
    return cleaned


# ==================== Profile Input ====================

class ProfileUpsert(BaseModel):
    """Setup form submission. List fields replace the stored ones."""
    bio: Optional[str] = Field(None, max_length=MAX_BIO_LENGTH)
    role: str = Field("technical", pattern=ROLE_PATTERN)
    skills: List[str]
    looking_for: List[str]
    project_ideas: List[str] = []
    interests: List[str] = []
    commitment: str = Field("flexible", pattern=COMMITMENT_PATTERN)

    @validator("bio")
    def strip_bio(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None

    @validator("skills", "looking_for")
    def require_entries(cls, v):
        cleaned = clean_list(v)
        if not cleaned:
            raise ValueError("At least one entry is required")
        return cleaned

    @validator("project_ideas")
    def limit_project_ideas(cls, v):
        cleaned = clean_list(v)
        if len(cleaned) > MAX_PROJECT_IDEAS:
            raise ValueError(f"At most {MAX_PROJECT_IDEAS} project ideas allowed")
        return cleaned

    @validator("interests")
    def clean_interests(cls, v):
        return clean_list(v)


class ProfileActiveUpdate(BaseModel):
    is_active: bool


class GithubRefreshRequest(BaseModel):
    """Optional username; falls back to the one already on the profile."""
    github_username: Optional[str] = Field(None, min_length=1, max_length=39, pattern=r"^[A-Za-z0-9-]+$")


# ==================== Profile Output ====================

class ProfileResponse(BaseModel):
    """Stored profile."""
    id: str
    user_id: str
    bio: Optional[str]
    role: str
    skills: List[str] = []
    looking_for: List[str] = []
    project_ideas: List[str] = []
    interests: List[str] = []
    commitment: Optional[str]
    github_username: Optional[str]
    github_commits: int = 0
    github_prs: int = 0
    github_languages: List[str] = []
    github_score: int = 0
    github_updated_at: Optional[datetime]
    avatar_seed: Optional[str]
    is_active: bool
    last_active: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileOwner(BaseModel):
    """Public account fields shown next to a profile."""
    id: str
    name: Optional[str]
    username: Optional[str]
    house: Optional[str]
    image: Optional[str]

    class Config:
        from_attributes = True


class ProfileWithOwner(ProfileResponse):
    user: ProfileOwner

    @classmethod
    def from_rows(cls, profile, user):
        """Build from a Profile row and its owning User row."""
        return cls(
            **ProfileResponse.model_validate(profile).model_dump(),
            user=ProfileOwner.model_validate(user),
        )

"""
Cached GitHub reputation stats for profiles.

Stats come from the public GitHub REST API and are stored on the profile,
where discovery ranks by github_score. Refreshes are throttled per user with
a Redis cooldown.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional

import requests
from sqlalchemy.ext.asyncio import AsyncSession

from findr.config import settings
from findr.core.exceptions import ExternalServiceError, InvalidOperation, NotFound
from findr.db.redis import RedisService
from findr.db.session import utcnow
from findr.models.user import Profile
from findr.services.profiles import get_my_profile


logger = logging.getLogger(__name__)

REFRESH_ACTION = "github_refresh"
MAX_LANGUAGES = 10


@dataclass
class GithubStats:
    commits: int = 0
    pull_requests: int = 0
    languages: List[str] = field(default_factory=list)


def compute_github_score(stats: GithubStats) -> int:
    return stats.commits + 5 * stats.pull_requests + 2 * len(stats.languages)


def _headers() -> dict:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if settings.GITHUB_TOKEN:
        headers["Authorization"] = f"Bearer {settings.GITHUB_TOKEN}"
    return headers


def _get(path: str, params: Optional[dict] = None) -> requests.Response:
    url = settings.GITHUB_API_URL.rstrip("/") + path
    try:
        response = requests.get(
            url,
            params=params,
            headers=_headers(),
            timeout=settings.GITHUB_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.warning("GitHub request failed url=%s error=%s", url, exc)
        raise ExternalServiceError("Could not reach GitHub. Please try again later.") from exc
    return response


def _search_total(path: str, query: str) -> int:
    response = _get(path, params={"q": query, "per_page": 1})
    if not response.ok:
        logger.warning("GitHub search failed path=%s status=%s", path, response.status_code)
        raise ExternalServiceError()
    return int(response.json().get("total_count", 0))


def fetch_github_stats(username: str) -> GithubStats:
    """Blocking fetch of public stats for username."""
    response = _get(f"/users/{username}/repos", params={"per_page": 100, "sort": "pushed"})
    if response.status_code == 404:
        raise NotFound(f"GitHub user '{username}' not found")
    if not response.ok:
        logger.warning("GitHub repo listing failed user=%s status=%s", username, response.status_code)
        raise ExternalServiceError()

    counts = Counter(repo["language"] for repo in response.json() if repo.get("language"))
    languages = [language for language, _ in sorted(counts.items(), key=lambda item: (-item[1], item[0]))]

    return GithubStats(
        commits=_search_total("/search/commits", f"author:{username}"),
        pull_requests=_search_total("/search/issues", f"author:{username} type:pr"),
        languages=languages[:MAX_LANGUAGES],
    )


async def refresh_github_stats(
    db: AsyncSession,
    user_id: str,
    redis: RedisService,
    github_username: Optional[str] = None,
) -> Profile:
    """Fetch fresh stats for the caller's profile and store them."""
    profile = await get_my_profile(db, user_id)

    username = github_username or profile.github_username
    if not username:
        raise InvalidOperation("Add a GitHub username to refresh stats.")

    allowed = await redis.acquire_cooldown(
        REFRESH_ACTION, user_id, settings.GITHUB_REFRESH_COOLDOWN_SECONDS
    )
    if not allowed:
        raise InvalidOperation("GitHub stats were refreshed recently. Try again later.")

    try:
        stats = await asyncio.to_thread(fetch_github_stats, username)
    except Exception:
        await redis.release_cooldown(REFRESH_ACTION, user_id)
        raise

    now = utcnow()
    profile.github_username = username
    profile.github_commits = stats.commits
    profile.github_prs = stats.pull_requests
    profile.github_languages = stats.languages
    profile.github_score = compute_github_score(stats)
    profile.github_updated_at = now
    profile.updated_at = now
    await db.commit()

    logger.info(
        "GitHub stats refreshed",
        extra={"user_id": user_id, "github_username": username, "score": profile.github_score},
    )
    return profile

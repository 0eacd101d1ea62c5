from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from findr.db.session import get_db
from findr.db.redis import RedisService
from findr.core.exceptions import AuthenticationRequired
from findr.core.security import verify_access_token
from findr.models.user import User


# Security scheme; missing credentials are reported as AuthenticationRequired
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the caller from the bearer token.
    Services receive the resulting id explicitly and never read it from context.
    """
    if credentials is None:
        raise AuthenticationRequired()

    token_data = verify_access_token(credentials.credentials)

    result = await db.execute(select(User).where(User.id == token_data.user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthenticationRequired("User not found")

    if not user.is_active:
        raise AuthenticationRequired("User account is deactivated")

    return user


def get_redis_service() -> RedisService:
    """Dependency to get Redis service."""
    return RedisService()

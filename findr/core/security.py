from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from pydantic import BaseModel

from findr.config import settings
from findr.core.exceptions import AuthenticationRequired


class TokenData(BaseModel):
    user_id: str


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Mint an access token. Production tokens come from the auth service; used by tooling and tests."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_access_token(token: str) -> TokenData:
    """Decode an access token and return the caller identity."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthenticationRequired("Invalid or expired token")

    if payload.get("type") != "access":
        raise AuthenticationRequired("Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationRequired("Invalid token payload")

    return TokenData(user_id=str(user_id))

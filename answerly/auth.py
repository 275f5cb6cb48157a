import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .config import APP_SECRET, JWT_ALGORITHM, TOKEN_TTL_MINUTES

logger = logging.getLogger(__name__)


class TokenData(BaseModel):
    sub: str
    roles: List[str] = []

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles


bearer = HTTPBearer(auto_error=False)


def create_token(
    user_id: str, roles: Optional[List[str]] = None, ttl_minutes: int = TOKEN_TTL_MINUTES
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "roles": roles or [],
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl_minutes)).timestamp()),
    }
    return jwt.encode(payload, APP_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> TokenData:
    try:
        payload = jwt.decode(token, APP_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenData(sub=str(payload["sub"]), roles=payload.get("roles", []))


def get_optional_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[TokenData]:
    """Anonymous callers get None; a malformed token is still rejected."""
    if creds is None:
        return None
    return decode_token(creds.credentials)


def get_current_user(
    user: Optional[TokenData] = Depends(get_optional_user),
) -> TokenData:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_roles(*required: str):
    def checker(user: TokenData = Depends(get_current_user)) -> TokenData:
        if not set(user.roles).intersection(required):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user

    return checker

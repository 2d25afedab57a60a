"""
Session collaborator: resolves the authenticated caller from a bearer
access token.

Login and credential checks live outside this service; they mint tokens with
`create_access_token`. Every protected route depends on
`get_current_principal`, which yields `(user_id, role)`.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Role(IntEnum):
    REGULAR = 0
    LOYAL = 1


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: Role


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _unauthorized(detail: str = "Not authorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None:
        raise _unauthorized()

    settings = get_settings()
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
        user_id = int(payload["sub"])
        role = Role(int(payload.get("role", Role.REGULAR)))
    except (jwt.PyJWTError, KeyError, TypeError, ValueError) as e:
        logger.warning("session_token_rejected", error=type(e).__name__)
        raise _unauthorized("Could not validate credentials")

    return Principal(user_id=user_id, role=role)


async def get_current_user_id(principal: Principal = Depends(get_current_principal)) -> int:
    return principal.user_id

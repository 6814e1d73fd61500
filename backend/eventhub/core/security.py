from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from eventhub.core.config import settings
from eventhub.core.errors import NotAuthenticated

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_in: timedelta = timedelta(days=1)) -> str:
    now = datetime.now(timezone.utc)
    claims = {"userId": user_id, "iat": now, "exp": now + expires_in}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_user_id(token: str) -> str:
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise NotAuthenticated() from exc

    user_id = claims.get("userId") or claims.get("sub")
    if not user_id:
        raise NotAuthenticated()
    return str(user_id)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is None:
        raise NotAuthenticated("No token, authorization denied")
    return decode_user_id(credentials.credentials)

"""Bearer token handling and actor resolution."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Depends, Header, HTTPException, status
from sqlmodel import Session

from character_journal.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, get_jwt_secret
from character_journal.core.db import get_db
from character_journal.models import AppUser, UserRole


class AuthError(Exception):
    pass


@dataclass(frozen=True)
class Actor:
    """Authenticated caller passed explicitly into every workflow operation."""

    id: int
    role: UserRole

    def has_role(self, role: UserRole) -> bool:
        return self.role == role


def _require_secret() -> str:
    secret = get_jwt_secret()
    if not secret:
        raise AuthError("JWT_SECRET is not configured")
    return secret


def create_access_token(user_id: int, role: UserRole | str, expires_minutes: int | None = None) -> str:
    exp_minutes = expires_minutes or ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.datetime.now(datetime.timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": UserRole(role).value,
        "iat": int(now.timestamp()),
        "exp": int((now + datetime.timedelta(minutes=exp_minutes)).timestamp()),
    }
    return jwt.encode(payload, _require_secret(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, _require_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise AuthError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthError("Invalid token") from exc
    if "sub" not in payload or "role" not in payload:
        raise AuthError("Invalid token payload")
    return payload


def _parse_token(auth_header: str | None) -> str:
    if not auth_header:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing Authorization header")
    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth scheme")
    return parts[1].strip()


def get_current_actor(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> Actor:
    token = _parse_token(authorization)
    try:
        payload = decode_access_token(token)
        user_id = int(payload["sub"])
        role = UserRole(payload["role"])
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload") from exc

    # 日本語: トークンのロールとDB上のロールが一致する場合のみ受理 / English: Accept only when token role matches the stored user
    user = db.get(AppUser, user_id)
    if user is None or user.role != role.value:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user")
    return Actor(id=user.id, role=role)

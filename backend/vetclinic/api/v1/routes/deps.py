"""Module: deps."""

import uuid
from typing import Callable, Generator

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.orm import Session

from vetclinic.core.errors import AuthenticationError, PermissionDeniedError
from vetclinic.core.security import resolve_token
from vetclinic.db.models.user import User
from vetclinic.db.session import SessionLocal

# Dependency provider: one DB session per request lifecycle.
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_token_value(authorization: str | None) -> str:
    if not authorization:
        raise AuthenticationError("Missing Authorization header")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthenticationError("Invalid Authorization header")

    return parts[1].strip()


# Resolves the bearer token to the acting user; every protected route depends on this.
def get_current_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    user_id = resolve_token(get_token_value(authorization))
    if not user_id:
        raise AuthenticationError("Invalid or expired token")

    user = db.execute(select(User).where(User.user_id == uuid.UUID(str(user_id)))).scalar_one_or_none()
    if not user or not user.is_active:
        raise AuthenticationError("User not found")
    return user


def require_role(*roles: str) -> Callable[..., User]:
    allowed = {r.upper() for r in roles}

    def _dependency(user: User = Depends(get_current_user)) -> User:
        if (user.role or "").upper() not in allowed:
            raise PermissionDeniedError(f"Access denied - {' or '.join(sorted(allowed)).lower()} role required")
        return user

    return _dependency

"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from workhub.core.role_policy import AccessDecision, Actor, Area, evaluate_access
from workhub.core.security import decode_access_token
from workhub.db.models import User
from workhub.db.session import SessionLocal

BEARER_PREFIX = "Bearer "


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX):].strip() or None


def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db),
) -> User | None:
    """
    Resolve the bearer token to an active user, or None.

    Any failure (missing header, bad signature, unknown or disabled user,
    revoked token) yields None.
    """
    token = _bearer_token(request)
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except jwt.InvalidTokenError:
        return None

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    # Token version check (revocation support)
    if user.token_version != payload.get("token_version"):
        return None
    return user


def get_current_user(user: User | None = Depends(get_current_user_optional)) -> User:
    """
    Authenticated user.

    Raises:
        HTTPException 401: Authentication failed
    """
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_area(area: Area):
    """
    Dependency factory for area-based authorization.

    Usage:
        @router.get("/sales", dependencies=[Depends(require_area(Area.SALES))])
    """

    def dependency(user: User | None = Depends(get_current_user_optional)) -> User:
        decision = evaluate_access(area, user)
        if decision is AccessDecision.LOGIN:
            raise HTTPException(status_code=401, detail="Not authenticated")
        if decision is AccessDecision.UNAUTHORIZED:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{user.role}' not authorized for this action",
            )
        return user

    return dependency


def actor_for(user: User) -> Actor:
    return Actor(name=user.name, role=user.role, user_id=user.id)

"""Bearer token helpers (JWT, HS256, with secret rotation)."""

from datetime import datetime, timedelta, timezone

import jwt

from workhub.core.config import settings


def create_access_token(user_id: int, role: str, token_version: int) -> str:
    """
    Create a signed access token.

    Always signs with the current secret. The token carries identity, role
    and the revocation version.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "token_version": token_version,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify an access token.

    Tries the current secret first, then the previous one, so secrets can be
    rotated without signing everyone out.

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error: jwt.InvalidTokenError | None = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
    raise last_error  # type: ignore[misc]

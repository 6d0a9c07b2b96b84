"""JWT helpers used by the identity provider."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from backend.app.core.config import settings


class TokenPayloadError(Exception):
    pass


def create_access_token(subject: str, extra: dict[str, Any] | None = None) -> str:
    """Issue a signed access token for a user id."""
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=settings.jwt_expiration_hours)).timestamp()),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise TokenPayloadError("Invalid or expired token") from exc

    if not payload.get("sub"):
        raise TokenPayloadError("Token payload is incomplete")
    return payload

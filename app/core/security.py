"""
Bearer token verification.

Access tokens are issued by the external identity provider (HS256 with a
shared secret). This service never issues or refreshes them; it only
decodes them and takes the caller's user id from the ``sub`` claim.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from app.config import settings


class InvalidTokenError(Exception):
    pass


@dataclass(frozen=True)
class AuthenticatedUser:
    id: uuid.UUID


def decode_access_token(token: str) -> AuthenticatedUser:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    sub = payload.get("sub")
    if not sub:
        raise InvalidTokenError("token has no subject")
    try:
        user_id = uuid.UUID(str(sub))
    except ValueError as exc:
        raise InvalidTokenError("token subject is not a user id") from exc

    return AuthenticatedUser(id=user_id)


def create_access_token(
    subject: Any,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a token the way the identity provider does (local tooling and tests)."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
    to_encode = {
        "sub": str(subject),
        "aud": settings.JWT_AUDIENCE,
        "role": "authenticated",
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

"""Auth service: bearer tokens identifying the acting user."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from sfa.config import get_settings

settings = get_settings()


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)
    )
    claims = {"sub": str(user_id), "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def actor_id_from_token(token: str) -> Optional[int]:
    """User id carried in the ``sub`` claim, or None for a bad/expired token."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    subject = str(payload.get("sub") or "")
    return int(subject) if subject.isdigit() else None

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt

from study_schedule.core.config import get_settings


def create_access_token(subject: str | int, expires_minutes: int = 60) -> str:
    """Issue a bearer token for ``subject``.

    Tokens are normally issued by the platform's auth service; this is kept for
    tooling and tests that need to act as a given user.
    """
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode: Dict[str, Any] = {
        "sub": str(subject),
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(
        to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )


def decode_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:  # pragma: no cover - captured and re-raised upstream
        raise ValueError("Invalid token") from exc

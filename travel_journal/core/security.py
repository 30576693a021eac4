"""Password hashing and access token helpers."""
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from travel_journal.core.config import get_settings


class InvalidToken(Exception):
    """Raised when an access token can't be trusted."""


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return check_password_hash(hashed_password, password)


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Sign a token whose subject is the user's id.

    Args:
        user_id: Id of the authenticated user
        expires_delta: Lifetime override; defaults to the configured expiry

    Returns:
        Encoded JWT string
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    claims = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(
        claims,
        settings.access_token_secret,
        algorithm=settings.access_token_algorithm,
    )


def decode_access_token(token: str) -> int:
    """Verify signature and expiry, and return the user id carried by the token."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.access_token_secret,
            algorithms=[settings.access_token_algorithm],
        )
    except JWTError as e:
        raise InvalidToken(str(e)) from e

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidToken("Invalid token subject") from e

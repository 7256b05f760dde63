"""Password hashing and user bearer tokens.

A token is an HS256 JWT whose `sub` claim is the user's id as a string.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings


ALGORITHM = "HS256"

# New hashes use PBKDF2; bcrypt hashes still verify
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a wrong password or a hash in an unknown format."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def create_user_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a bearer token for a user.

    Args:
        user_id: Becomes the `sub` claim
        expires_delta: Lifetime; defaults to ACCESS_TOKEN_EXPIRE_DAYS
    """
    lifetime = expires_delta if expires_delta is not None else timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    claims = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGORITHM)


def read_user_id(token: str) -> Optional[int]:
    """User id carried by a token.

    Returns:
        None when the signature or expiry check fails, or when `sub` is
        missing or not an integer id.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None

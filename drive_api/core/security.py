import hashlib
import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from drive_api.core.config import Settings

# Checked against unknown emails so a failed login costs the same either way
_DUMMY_PASSWORD_HASH = generate_password_hash(secrets.token_hex(16))


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite hands back for DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, hashed_password: str | None) -> bool:
    if hashed_password is None:
        check_password_hash(_DUMMY_PASSWORD_HASH, password)
        return False
    return check_password_hash(hashed_password, password)


def create_access_token(
    *,
    subject: int,
    role: str,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    claims = {"sub": str(subject), "role": role, "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> dict:
    """Verify signature and expiry. Raises jose.JWTError on any failure."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> tuple[str, str]:
    """Return (plaintext token, stored hash)."""
    token = secrets.token_hex(32)
    return token, hash_reset_token(token)

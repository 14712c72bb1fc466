from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from app.core.config import settings
import hashlib
import hmac
import secrets


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its stored hash"""
    if not hashed_password or not hashed_password.startswith("sha256$"):
        return False
    parts = hashed_password.split("$")
    if len(parts) != 3:
        return False
    compare_hash = hash_password(plain_password, parts[1])
    return hmac.compare_digest(compare_hash, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using SHA256 with a random salt"""
    salt = secrets.token_hex(16)
    return hash_password(password, salt)


def hash_password(password: str, salt: str) -> str:
    """Hash password with salt using SHA256"""
    salted_password = salt + password
    hashed = hashlib.sha256(salted_password.encode()).hexdigest()
    return f"sha256${salt}${hashed}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = _now() + expires_delta
    else:
        expire = _now() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "type": "access",
        "iat": _now(),
    })

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = _now() + expires_delta
    else:
        expire = _now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str):
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

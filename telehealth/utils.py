import re
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from .config import Settings
from .exceptions import ValidationFailed

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# =========================
# Password hashing
# =========================
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False


# =========================
# JWT Token Handling
# =========================
def create_jwt_token(user_id: str, settings: Settings) -> str:
    """Create a signed access token whose subject is the user id"""
    if not settings.secret_key_configured:
        raise ValueError("SECRET_KEY not properly configured")

    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": str(user_id), "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_jwt_token(token: str, settings: Settings) -> Optional[dict]:
    """Decode and verify a token; None when invalid, expired or unsigned"""
    if not settings.secret_key_configured:
        return None
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


# =========================
# Misc
# =========================
def slugify(value: str) -> str:
    value = value.strip().lower()
    value = re.sub(r"[^a-z0-9\s-]", "", value)
    value = re.sub(r"[\s_-]+", "-", value)
    return value.strip("-")


def parse_date(value: str, field: str = "date"):
    """Parse an ISO date (YYYY-MM-DD, a trailing time part is ignored)"""
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationFailed(f"Invalid {field} format. Use YYYY-MM-DD")

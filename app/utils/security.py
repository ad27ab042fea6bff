# app/utils/security.py
from datetime import datetime, timedelta
from typing import Any, Optional
from jose import jwt
from passlib.context import CryptContext
from passlib.exc import UnknownHashError
import re
import logging
from ..config import settings

logger = logging.getLogger(__name__)

# argon2 has no 72-byte limit
pwd_context = CryptContext(
    schemes=['argon2'],
    deprecated='auto'
)

# ============================================================
# JWT Functions
# ============================================================

def create_access_token(
    subject: Any,
    expires_delta: Optional[timedelta] = None,
    role: Optional[str] = None
) -> str:
    """
    Create a signed JWT access token.

    Args:
        subject: User ID
        expires_delta: Custom lifetime, ACCESS_TOKEN_EXPIRE_MINUTES otherwise
        role: User role (user, creator or admin)
    """
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode = {
        'exp': expire,
        'sub': str(subject),
        'type': 'access',
        'iat': now,
        'role': role or 'user',
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT token.

    Raises:
        ExpiredSignatureError: If token has expired
        JWTError: If token is invalid
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


# ============================================================
# Password Functions
# ============================================================

def get_password_hash(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash, False on any malformed input"""
    if not plain_password or not hashed_password:
        return False

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except UnknownHashError:
        logger.warning("Hash format is not recognized")
        return False


def validate_password_strength(password: str) -> tuple[bool, str]:
    """Returns (is_valid, message)"""
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"

    if not re.search(r'[0-9]', password):
        return False, "Password must contain at least one number"

    if not re.search(r'[A-Za-z]', password):
        return False, "Password must contain at least one letter"

    return True, "Password is strong"

"""
Password hashing and JWT token utilities
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError
import bcrypt
import logging

from ..config import settings
from ..domain.models import Account

logger = logging.getLogger(__name__)

# Bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash password with a per-password salt"""
    password_bytes = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against a stored bcrypt hash"""
    password_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Checked against when the account does not exist, so failed logins take
# the same time either way
_DUMMY_HASH = hash_password("not-a-real-password")


def burn_password_check(plain_password: str) -> None:
    """Run a bcrypt comparison whose result is discarded"""
    verify_password(plain_password, _DUMMY_HASH)


def create_access_token(account: Account, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token for an account

    Args:
        account: Authenticated account
        expires_delta: Overrides ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": account.id,
        "email": account.email,
        "username": account.username,
        "role": account.role.value,
        "type": "access",
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode an access token; None if invalid, expired or of the wrong type"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected token: {e}")
        return None

    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    return payload

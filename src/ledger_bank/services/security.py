"""
Credential helpers: password hashing, JWT issuing/decoding and the
caller identity handed to the ledger service.
"""

import hashlib
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from uuid import UUID

import bcrypt
import jwt

from ..config import get_settings
from ..utils import utcnow


@dataclass(frozen=True)
class CallerIdentity:
    """
    An authenticated caller. The ledger service trusts it as-is.
    """

    user_id: UUID
    username: str
    account_number: str


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    rounds = rounds or get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def hash_token(token: str) -> str:
    """
    Tokens are stored server-side only as their sha256 hex digest.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_access_token(user_id: UUID, username: str) -> tuple:
    """
    Issue an HS256 JWT. Returns (token, expires_at) with expires_at as naive UTC.
    """
    settings = get_settings()
    expires_at = utcnow() + timedelta(minutes=settings.jwt_expires_minutes)
    payload = {
        "sub": str(user_id),
        "username": username,
        # unique per issue so two logins in the same second differ
        "jti": uuid.uuid4().hex,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_access_token(token: str) -> Optional[dict]:
    """
    Verify signature and expiry. Returns the payload or None.
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.InvalidTokenError:
        return None

"""
Password hashing and bearer token helpers.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from portfolio_api.config import Settings
from portfolio_api.errors import Unauthorized

# pbkdf2_sha256 avoids the external bcrypt build dependency
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_token(user_id: str, role: str, settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.token_expiry_days)
    payload = {"sub": user_id, "role": role, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Return ``{"id", "role"}`` for a valid token, else raise ``Unauthorized``."""
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")
    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or role not in ("client", "admin"):
        raise Unauthorized("Invalid token")
    return {"id": user_id, "role": role}


def parse_bearer(authorization: str | None) -> str:
    if not authorization:
        raise Unauthorized("No token provided")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Invalid auth header")
    return token.strip()

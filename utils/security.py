"""
security helpers:
- Argon2id password hashing via argon2-cffi
- Access JWT creation/verification via PyJWT
- Opaque refresh token values (fixed length, URL-safe)
"""
from __future__ import annotations

import secrets
import uuid
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError

from flask import current_app

from utils.timeutils import utcnow

ph = PasswordHasher()

# 48 random bytes -> 64 url-safe characters
REFRESH_TOKEN_BYTES = 48


class InvalidAccessToken(Exception):
    """Raised when an access JWT is missing, malformed, expired or of the wrong type."""


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2id
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password against an Argon2 hash
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def generate_refresh_token_value() -> str:
    """Unguessable opaque refresh token value."""
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def create_access_token(subject: str, role: str = "user", jti: str | None = None) -> str:
    """Short-lived HS256 access token for the given user id."""
    jti = jti or generate_jti()
    now = utcnow()
    exp = now + current_app.config["ACCESS_TOKEN_EXPIRES"]
    payload = {
        "iss": current_app.config.get("JWT_ISSUER", "dine-rank-api"),
        "sub": str(subject),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        "type": "access",
        "jti": jti,
        "role": role,
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=current_app.config["JWT_ALGORITHM"])


def decode_token(token: str, expected_type: str = "access") -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises InvalidAccessToken on invalid signature/expired jwt
    or when the "type" claim does not match expected_type.
    """
    try:
        decoded = jwt.decode(
            token, current_app.config["JWT_SECRET"], algorithms=[current_app.config["JWT_ALGORITHM"]]
        )
    except jwt.ExpiredSignatureError:
        raise InvalidAccessToken("Token expired")
    except jwt.InvalidTokenError as exc:
        raise InvalidAccessToken(f"Invalid token: {exc}")

    if decoded.get("type") != expected_type:
        raise InvalidAccessToken("Wrong token type")
    return decoded

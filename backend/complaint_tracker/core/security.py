"""
Password hashing, bearer-token issue/verification and the current-user dependency.

Tokens are HS256 JWTs signed with JWT_SECRET and carry the identity claims
{id, email, role, name}.  The server keeps no session state: get_current_user()
trusts the verified claims and never touches the database, so logout is a
client-side concern.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from complaint_tracker.core.config import get_settings
from complaint_tracker.core.errors import UnauthorizedError

logger = logging.getLogger(__name__)
settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class CurrentUser(BaseModel):
    """Identity decoded from a verified bearer token."""

    id: int
    email: str
    role: str
    name: str


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Unrecognised hash format stored for this user
        return False


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def create_access_token(user: Any) -> str:
    """Sign a token for any object exposing id/email/role/name."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "name": user.name,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> CurrentUser:
    """
    Verify a bearer token and return the identity it carries.
    Raises UnauthorizedError("Token expired") or UnauthorizedError("Invalid token").
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise UnauthorizedError("Token expired") from exc
    except JWTError as exc:
        raise UnauthorizedError("Invalid token") from exc

    try:
        return CurrentUser(
            id=payload["id"],
            email=payload["email"],
            role=payload["role"],
            name=payload["name"],
        )
    except (KeyError, ValueError) as exc:
        raise UnauthorizedError("Invalid token") from exc


async def get_current_user(token: str | None = Depends(oauth2_scheme)) -> CurrentUser:
    """FastAPI dependency: resolve the authenticated identity from the bearer token."""
    if not token:
        raise UnauthorizedError(
            "No token provided. Authorization header must be in format: Bearer <token>"
        )
    return decode_access_token(token)

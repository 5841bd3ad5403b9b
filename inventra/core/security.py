"""
Actor identity at the request boundary.

Tokens are issued by the authentication service; this module only verifies
them and turns the claims into an ``Actor`` for the ledger operations.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import uuid

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from inventra.core.config import settings

ROLE_MANAGER = "MANAGER"
ROLE_EMPLOYEE = "EMPLOYEE"

# HTTP Bearer token scheme
security_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """Already-authenticated caller."""
    id: uuid.UUID
    role: str
    name: Optional[str] = None


def create_access_token(
    subject: str | uuid.UUID,
    role: str = ROLE_EMPLOYEE,
    name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: User ID
        role: MANAGER or EMPLOYEE
        name: Display name carried for logs
        expires_delta: Token expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes))

    to_encode: dict[str, Any] = {
        "exp": expire,
        "iat": now,
        "sub": str(subject),
        "type": "access",
        "role": role,
    }
    if name:
        to_encode["name"] = name

    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a JWT token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise _credentials_error("Invalid or expired token")


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> Actor:
    """Resolve the calling actor from the bearer token."""
    if credentials is None:
        raise _credentials_error("Missing token")

    payload = decode_token(credentials.credentials)
    if payload.get("type") != "access":
        raise _credentials_error("Invalid token type")

    try:
        actor_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise _credentials_error()

    role = payload.get("role")
    if role not in (ROLE_MANAGER, ROLE_EMPLOYEE):
        raise _credentials_error("Unknown role")

    return Actor(id=actor_id, role=role, name=payload.get("name"))


def require_role(*roles: str):
    """Dependency factory allowing only the given roles."""

    async def _checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden (role not allowed)"
            )
        return actor

    return _checker

"""
Identity resolution for FastAPI endpoints.

Tokens are issued by the auth service; this module only turns a bearer
token into the caller's Identity so the core can compare owners.

Provides:
- `Identity` model for the resolved caller
- `get_current_user` dependency for routes that require a caller
- `get_optional_user` dependency for routes where the caller may be anonymous
"""
import logging
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from sweetholic.config import settings
from sweetholic.errors import AuthenticationError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class Identity(BaseModel):
    """The resolved caller: claims carried by a validated token."""
    id: int
    username: str
    email: Optional[str] = None


def decode_token(token: str) -> Optional[Identity]:
    """Validate signature and expiry and return the caller, or None."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": True},
        )
        return Identity(
            id=int(payload["id"]),
            username=payload["username"],
            email=payload.get("email"),
        )
    except (jwt.PyJWTError, KeyError, TypeError, ValueError) as exc:
        logger.debug("Rejected bearer token: %s", exc)
        return None


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    if not creds:
        raise AuthenticationError(
            "No token provided. Authorization header must be in format: Bearer <token>"
        )
    identity = decode_token(creds.credentials)
    if identity is None:
        raise AuthenticationError("Invalid or expired token")
    return identity


def get_optional_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Identity]:
    """Like get_current_user, but a missing or bad token means anonymous."""
    if not creds:
        return None
    return decode_token(creds.credentials)

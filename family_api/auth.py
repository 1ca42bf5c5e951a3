"""Caller identity for administrative reads.

Accounts, passwords and token issuance belong to the registration service.
This module only verifies the HS256 tokens that service signs with the
shared ``JWT_SECRET`` (PyJWT) and provides FastAPI dependencies for roles.
"""

from __future__ import annotations

import os
from typing import Any, Optional

import jwt
from fastapi import Depends, HTTPException, Request

_JWT_SECRET_ENV = "JWT_SECRET"
_JWT_ALGORITHM = "HS256"
_JWT_COOKIE_NAME = "family_session"


def _get_jwt_secret() -> str:
    return os.environ.get(_JWT_SECRET_ENV, "")


def decode_jwt(token: str) -> dict[str, Any]:
    """Decode and verify a JWT.  Raises ``jwt.PyJWTError`` on failure.

    Without a configured secret every token is rejected.
    """
    secret = _get_jwt_secret()
    if not secret:
        raise jwt.InvalidKeyError(f"{_JWT_SECRET_ENV} is not set")
    return jwt.decode(token, secret, algorithms=[_JWT_ALGORITHM])


def token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(_JWT_COOKIE_NAME) or None


def user_from_claims(claims: dict[str, Any]) -> dict[str, Any]:
    """Map verified claims to ``request.state.user``.  Raises ``ValueError`` without a numeric ``sub``."""
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("token has no numeric subject") from exc
    return {
        "id": user_id,
        "username": claims.get("username", ""),
        "role": claims.get("role", "member"),
        "person_id": claims.get("person_id"),
    }


def get_current_user(request: Request) -> dict[str, Any]:
    """Extract the authenticated user from ``request.state`` (set by middleware).

    Raises 401 if not authenticated.
    """
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_role(*allowed_roles: str):
    """Return a FastAPI dependency that checks the user's role."""

    def _check(request: Request) -> dict[str, Any]:
        user = get_current_user(request)
        if user["role"] not in allowed_roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return Depends(_check)

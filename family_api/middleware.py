"""Request-level authentication for administrative paths.

Family graph reads under ``/api/family`` are public. Paths under
``/api/admin/`` need a valid JWT (bearer header or session cookie); the
middleware populates ``request.state.user`` with id, username, role and the
linked person id.
"""

from __future__ import annotations

import logging

import jwt as pyjwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

try:
    from .auth import decode_jwt, token_from_request, user_from_claims
except ImportError:  # pragma: no cover
    from auth import decode_jwt, token_from_request, user_from_claims

log = logging.getLogger(__name__)

_PROTECTED_PREFIXES = ("/api/admin/",)


def _is_protected(path: str) -> bool:
    return any(path.startswith(p) for p in _PROTECTED_PREFIXES)


class AuthMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that enforces JWT-based authentication on admin paths."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.user = None
        if not _is_protected(request.url.path):
            return await call_next(request)

        token = token_from_request(request)
        if not token:
            return JSONResponse({"detail": "Not authenticated"}, status_code=401)

        try:
            claims = decode_jwt(token)
            user = user_from_claims(claims)
        except pyjwt.ExpiredSignatureError:
            return JSONResponse({"detail": "Session expired"}, status_code=401)
        except (pyjwt.PyJWTError, ValueError) as exc:
            log.info("rejected invalid token on %s: %s", request.url.path, exc)
            return JSONResponse({"detail": "Invalid session"}, status_code=401)

        request.state.user = user
        return await call_next(request)

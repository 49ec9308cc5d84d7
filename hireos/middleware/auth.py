"""Authentication middleware for JWT validation."""

import re
from typing import Optional

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from hireos.config.settings import settings
from hireos.middleware.error_handler import error_body
from hireos.services.token import decode_token, create_token, should_refresh_token

logger = structlog.get_logger()


# Paths that don't require authentication
SKIP_AUTH_PATHS = [
    r"^/$",
    r"^/health",
    r"^/api/offers/[^/]+$",
    r"^/api/offers/[^/]+/respond$",
    r"^/api/webhooks/calendar",
    r"^/api/docs",
    r"^/api/openapi\.json",
    r"^/api/redoc",
]

SKIP_AUTH_PATTERNS = [re.compile(p) for p in SKIP_AUTH_PATHS]


def should_skip_auth(path: str) -> bool:
    """Check if path should skip authentication."""
    return any(pattern.match(path) for pattern in SKIP_AUTH_PATTERNS)


def get_token_from_request(request: Request) -> Optional[str]:
    """Extract JWT token from request (cookie or Authorization header)."""
    token = request.cookies.get(settings.COOKIE_NAME)
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    return None


def unauthorized(message: str) -> JSONResponse:
    return JSONResponse(status_code=401, content=error_body("UNAUTHORIZED", message))


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates JWT tokens on protected routes."""

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and validate authentication."""
        if request.method == "OPTIONS" or should_skip_auth(request.url.path):
            return await call_next(request)

        token = get_token_from_request(request)
        if not token:
            return unauthorized("Not authenticated")

        try:
            payload = decode_token(token)
        except JWTError as e:
            logger.info("Token rejected", error=str(e), path=request.url.path)
            return unauthorized(str(e))

        sub = payload.get("sub")
        if not sub or not str(sub).isdigit():
            return unauthorized("Invalid token subject")

        # Store user info in request state
        request.state.user = payload
        request.state.user_id = int(sub)
        request.state.user_email = payload.get("email")
        structlog.contextvars.bind_contextvars(user_id=request.state.user_id)

        response = await call_next(request)

        # Rolling token refresh
        if should_refresh_token(payload):
            claims = {k: v for k, v in payload.items() if k not in ("exp", "iat")}
            new_token = create_token(claims)
            response.set_cookie(
                key=settings.COOKIE_NAME,
                value=new_token,
                httponly=True,
                secure=settings.COOKIE_SECURE,
                samesite=settings.COOKIE_SAMESITE,
                domain=settings.COOKIE_DOMAIN,
                max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            )

        return response

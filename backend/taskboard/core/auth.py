"""Caller identity resolution for local-token and passthrough auth modes."""

from __future__ import annotations

from dataclasses import dataclass
from hmac import compare_digest
from typing import Literal

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskboard.core.auth_mode import AuthMode
from taskboard.core.config import settings
from taskboard.core.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)


@dataclass
class AuthContext:
    """Authenticated caller context resolved from inbound auth headers."""

    actor_type: Literal["user"]
    user_id: str


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value:
        return None
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", maxsplit=1)[1].strip()
    return token or None


def resolve_caller(token: str | None) -> str | None:
    """Map a bearer token to a user id, or `None` when it is not accepted.

    In passthrough mode the token itself is the user id and nothing is verified.
    """
    if token is None:
        return None
    if settings.auth_mode == AuthMode.PASSTHROUGH:
        return token
    expected = settings.local_auth_token.strip()
    if not expected or not compare_digest(token, expected):
        return None
    return settings.local_auth_user_id


def _resolve_auth_context(request: Request) -> AuthContext | None:
    token = _extract_bearer_token(request.headers.get("Authorization"))
    user_id = resolve_caller(token)
    if user_id is None:
        return None
    return AuthContext(actor_type="user", user_id=user_id)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
) -> AuthContext:
    """Resolve required authenticated caller context for the configured auth mode."""
    auth = _resolve_auth_context(request)
    if auth is None:
        logger.debug(
            "auth.rejected",
            extra={"path": request.url.path, "has_credentials": credentials is not None},
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return auth


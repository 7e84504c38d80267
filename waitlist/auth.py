from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from .settings import Settings, get_settings
from .signing import SESSION_COOKIE, verify_session_token

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/google"


class LoginRequired(Exception):
    """Raised by page dependencies when the visitor has no valid session."""


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
    )


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def authenticate(request: Request, settings: Settings) -> Optional[str]:
    """Return the identity behind the session cookie, or ``None``."""

    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    return verify_session_token(token, settings.session_secret)


def authorize(identity: str, settings: Settings) -> bool:
    # Exact, case-sensitive match against the configured addresses.
    return identity in settings.allowed_emails


def require_admin_page(request: Request, settings: Settings = Depends(get_settings)) -> str:
    identity = authenticate(request, settings)
    if identity is None:
        raise LoginRequired()
    if not authorize(identity, settings):
        logger.warning("Session identity not in allowlist", extra={"path": request.url.path})
        raise _forbidden("forbidden")
    return identity


def require_admin(request: Request, settings: Settings = Depends(get_settings)) -> str:
    identity = authenticate(request, settings)
    if identity is None:
        raise _unauthorized("unauthorized")
    if not authorize(identity, settings):
        logger.warning("Session identity not in allowlist", extra={"path": request.url.path})
        raise _forbidden("forbidden")
    return identity

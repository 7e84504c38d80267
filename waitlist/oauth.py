"""Google OAuth 2.0 / OpenID Connect login for the admin pages.

The flow is the plain authorization-code grant:

1. ``/auth/google`` stores a random state value in a short-lived cookie and
   redirects to the provider's consent screen.
2. The provider redirects back to ``/auth/callback`` with ``code`` and
   ``state``. The state must equal the cookie value.
3. The code is exchanged for tokens over a direct server-to-server request and
   the ``email`` / ``email_verified`` claims are read from the identity token.
4. An allowlisted, verified email gets a signed session cookie.

By default the identity token's signature is NOT verified. The token is
trusted because it was received directly from the provider's token endpoint
over HTTPS, not from the browser. Set ``OAUTH_VERIFY_ID_TOKEN`` to verify it
against the provider's published keys as well.
"""
from __future__ import annotations

import logging
import secrets
from functools import lru_cache
from typing import Any, Dict
from urllib.parse import urlencode

import httpx
import jwt
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from .auth import authorize
from .settings import Settings, get_settings
from .signing import SESSION_COOKIE, SESSION_MAX_AGE, mint_session_token

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth")

STATE_COOKIE = "oauth_state"
STATE_MAX_AGE = 600
CALLBACK_PATH = "/auth/callback"
ADMIN_PATH = "/admin/waitlist"
SCOPES = "openid email"


class IdentityProviderError(Exception):
    """Represents a failed exchange with the identity provider."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class IdentityProviderClient:
    """Exchanges authorization codes at the provider's token endpoint."""

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        token_url: str,
        timeout: float = 10.0,
    ) -> None:
        if not token_url:
            raise ValueError("OAuth token URL must be configured")
        if not client_id or not client_secret:
            raise ValueError("OAuth client credentials must be configured")

        self._client_id = client_id
        self._client_secret = client_secret
        self._token_url = token_url
        self._timeout = timeout

    async def exchange_code(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        form = {
            'code': code,
            'client_id': self._client_id,
            'client_secret': self._client_secret,
            'redirect_uri': redirect_uri,
            'grant_type': 'authorization_code',
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._token_url,
                    data=form,
                    headers={'Accept': 'application/json'},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as error:
            logger.warning("Token exchange rejected", extra={"status": error.response.status_code})
            raise IdentityProviderError(status.HTTP_502_BAD_GATEWAY, "token exchange failed") from error
        except httpx.RequestError as error:
            logger.warning("Token exchange request failed", extra={"error": type(error).__name__})
            raise IdentityProviderError(status.HTTP_502_BAD_GATEWAY, "token exchange failed") from error

        try:
            payload = response.json()
        except ValueError as error:
            raise IdentityProviderError(status.HTTP_502_BAD_GATEWAY, "token exchange failed") from error

        if not isinstance(payload, dict) or not payload.get('id_token'):
            raise IdentityProviderError(status.HTTP_502_BAD_GATEWAY, "missing id_token")
        return payload


@lru_cache(maxsize=1)
def get_identity_provider() -> IdentityProviderClient:
    settings = get_settings()
    return IdentityProviderClient(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        token_url=settings.oauth_token_url,
        timeout=settings.http_timeout_seconds,
    )


@lru_cache(maxsize=4)
def _get_jwks_client(jwks_url: str, timeout: float) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(jwks_url, timeout=timeout)


def read_identity_claims(id_token: str, settings: Settings) -> Dict[str, Any]:
    """Return the claims of an identity token received from the token endpoint."""

    try:
        if settings.verify_id_token_signature:
            jwks_client = _get_jwks_client(settings.oauth_jwks_url, settings.http_timeout_seconds)
            signing_key = jwks_client.get_signing_key_from_jwt(id_token)
            return jwt.decode(
                id_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=settings.google_client_id,
            )
        return jwt.decode(id_token, options={"verify_signature": False})
    except (jwt.InvalidTokenError, jwt.PyJWKClientError) as error:
        logger.warning("Identity token rejected", extra={"error": type(error).__name__})
        raise IdentityProviderError(status.HTTP_502_BAD_GATEWAY, "invalid id_token") from error


def resolve_origin(request: Request, settings: Settings) -> str:
    if settings.public_origin:
        return settings.public_origin
    return f"{request.url.scheme}://{request.url.netloc}"


def build_authorization_url(settings: Settings, origin: str, state: str) -> str:
    params = {
        'client_id': settings.google_client_id,
        'redirect_uri': f"{origin}{CALLBACK_PATH}",
        'response_type': 'code',
        'scope': SCOPES,
        'state': state,
        'prompt': 'select_account',
    }
    return f"{settings.oauth_authorize_url}?{urlencode(params)}"


def begin_login(settings: Settings, origin: str) -> Response:
    """Redirect to the provider's consent screen and remember the state value."""

    state = secrets.token_urlsafe(32)
    response = RedirectResponse(
        build_authorization_url(settings, origin, state),
        status_code=status.HTTP_302_FOUND,
    )
    response.set_cookie(
        STATE_COOKIE,
        state,
        max_age=STATE_MAX_AGE,
        path="/",
        secure=True,
        httponly=True,
        samesite="lax",
    )
    return response


def _reject(detail: str, status_code: int = status.HTTP_403_FORBIDDEN) -> Response:
    return PlainTextResponse(detail, status_code=status_code)


async def handle_callback(
    request: Request,
    settings: Settings,
    provider: IdentityProviderClient,
) -> Response:
    """Complete the login started by :func:`begin_login`."""

    code = request.query_params.get('code')
    state = request.query_params.get('state')
    saved_state = request.cookies.get(STATE_COOKIE)

    if not code or not state or state != saved_state:
        logger.warning("OAuth callback with missing or mismatched state")
        return _reject("invalid oauth state")

    origin = resolve_origin(request, settings)
    try:
        tokens = await provider.exchange_code(code, f"{origin}{CALLBACK_PATH}")
        # Key lookup may block on an HTTP fetch.
        claims = await run_in_threadpool(read_identity_claims, tokens['id_token'], settings)
    except IdentityProviderError as error:
        return _reject(error.detail, error.status_code)

    email = claims.get('email')
    if not isinstance(email, str) or not email or claims.get('email_verified') is not True:
        logger.warning("OAuth login without a verified email")
        return _reject("email not verified")

    if not authorize(email, settings):
        logger.warning("OAuth login for email outside the allowlist")
        return _reject("forbidden: email not in allowlist")

    logger.info("Administrator signed in")
    response = RedirectResponse(f"{origin}{ADMIN_PATH}", status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        SESSION_COOKIE,
        mint_session_token(email, settings.session_secret),
        max_age=SESSION_MAX_AGE,
        path="/",
        secure=True,
        httponly=True,
        samesite="lax",
    )
    response.delete_cookie(STATE_COOKIE, path="/", secure=True, httponly=True, samesite="lax")
    return response


def logout() -> Response:
    """Clear the session cookie. The token itself stays valid until it expires."""

    response = RedirectResponse("/", status_code=status.HTTP_302_FOUND)
    response.delete_cookie(SESSION_COOKIE, path="/", secure=True, httponly=True, samesite="lax")
    return response


@router.get("/google")
def login(request: Request, settings: Settings = Depends(get_settings)) -> Response:
    return begin_login(settings, resolve_origin(request, settings))


@router.get("/callback")
async def callback(
    request: Request,
    settings: Settings = Depends(get_settings),
    provider: IdentityProviderClient = Depends(get_identity_provider),
) -> Response:
    return await handle_callback(request, settings, provider)


@router.get("/logout")
def logout_route() -> Response:
    return logout()

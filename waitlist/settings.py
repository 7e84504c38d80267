from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"

MIN_SESSION_SECRET_LENGTH = 32


@dataclass(frozen=True)
class Settings:
    google_client_id: str
    google_client_secret: str
    session_secret: str
    allowed_emails: tuple[str, ...]
    webhook_url: str | None
    public_origin: str | None
    http_timeout_seconds: float
    oauth_authorize_url: str
    oauth_token_url: str
    oauth_jwks_url: str
    verify_id_token_signature: bool


def normalize_origin(value: str) -> str:
    """Reduce a configured public origin to scheme://netloc."""

    parsed = urlparse(value.strip())
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.hostname:
        raise ValueError("origin must be an http(s) URL with a hostname")
    if parsed.path.strip("/") or parsed.query or parsed.fragment:
        raise ValueError("origin must not include a path, query, or fragment")

    scheme = parsed.scheme.lower()
    default_port = 80 if scheme == "http" else 443
    if parsed.port in (None, default_port):
        return f"{scheme}://{parsed.hostname.lower()}"
    return f"{scheme}://{parsed.hostname.lower()}:{parsed.port}"


def parse_allowlist(raw: str) -> tuple[str, ...]:
    """Split a comma-separated email list. Case is preserved on purpose."""

    return tuple(entry.strip() for entry in raw.split(",") if entry.strip())


def _load_allowed_emails(env_name: str) -> tuple[str, ...]:
    raw = os.environ.get(env_name)
    if not raw:
        raise RuntimeError(f"Environment variable {env_name} must list administrator emails")

    entries = parse_allowlist(raw)
    if not entries:
        raise RuntimeError(f"Environment variable {env_name} must list at least one email")
    return entries


def _load_env(name: str) -> str:
    try:
        return os.environ[name]
    except KeyError as error:
        raise RuntimeError(f"Environment variable {name} must be set") from error


def _load_session_secret(name: str) -> str:
    secret = _load_env(name)
    if len(secret) < MIN_SESSION_SECRET_LENGTH:
        raise RuntimeError(
            f"Environment variable {name} must be at least {MIN_SESSION_SECRET_LENGTH} characters"
        )
    return secret


def _load_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    google_client_id = _load_env("GOOGLE_CLIENT_ID")
    google_client_secret = _load_env("GOOGLE_CLIENT_SECRET")
    session_secret = _load_session_secret("SESSION_SECRET")
    allowed_emails = _load_allowed_emails("ALLOWED_EMAILS")

    webhook_url = os.environ.get("WAITLIST_WEBHOOK_URL") or None

    public_origin = os.environ.get("WAITLIST_PUBLIC_ORIGIN")
    if public_origin:
        try:
            public_origin = normalize_origin(public_origin)
        except ValueError as error:
            raise RuntimeError(f"WAITLIST_PUBLIC_ORIGIN '{public_origin}' is invalid: {error}") from error
    else:
        public_origin = None

    http_timeout_seconds = float(os.environ.get("WAITLIST_HTTP_TIMEOUT", "10"))
    oauth_authorize_url = os.environ.get("OAUTH_AUTHORIZE_URL", GOOGLE_AUTHORIZE_URL)
    oauth_token_url = os.environ.get("OAUTH_TOKEN_URL", GOOGLE_TOKEN_URL)
    oauth_jwks_url = os.environ.get("OAUTH_JWKS_URL", GOOGLE_JWKS_URL)
    verify_id_token_signature = _load_flag("OAUTH_VERIFY_ID_TOKEN")

    return Settings(
        google_client_id=google_client_id,
        google_client_secret=google_client_secret,
        session_secret=session_secret,
        allowed_emails=allowed_emails,
        webhook_url=webhook_url,
        public_origin=public_origin,
        http_timeout_seconds=http_timeout_seconds,
        oauth_authorize_url=oauth_authorize_url,
        oauth_token_url=oauth_token_url,
        oauth_jwks_url=oauth_jwks_url,
        verify_id_token_signature=verify_id_token_signature,
    )

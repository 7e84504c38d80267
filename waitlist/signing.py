"""Stateless signed session tokens.

A token is ``<payload>.<signature>`` where ``payload`` is the JSON document
``{"email": ..., "exp": ...}`` and ``signature`` is HMAC-SHA256 over that
document keyed with the session secret. Both segments use unpadded URL-safe
base64 so the token can be stored in a cookie without quoting.

Nothing is kept server side: logging out only clears the cookie, and a copied
token stays valid until ``exp``.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from typing import Optional

SESSION_COOKIE = "session"
SESSION_MAX_AGE = 24 * 60 * 60


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    data = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
    # Reject alternate spellings of the same bytes (unused trailing bits).
    if _b64encode(data) != segment:
        raise ValueError("Non-canonical base64 segment")
    return data


def _sign(payload: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
    return _b64encode(digest)


def mint_session_token(identity: str, secret: str, now: Optional[float] = None) -> str:
    """Issue a session token for ``identity`` that expires in 24 hours."""

    issued_at = int(time.time() if now is None else now)
    payload = json.dumps(
        {"email": identity, "exp": issued_at + SESSION_MAX_AGE},
        separators=(",", ":"),
    ).encode("utf-8")
    return f"{_b64encode(payload)}.{_sign(payload, secret)}"


def verify_session_token(token: str, secret: str, now: Optional[float] = None) -> Optional[str]:
    """Return the identity carried by ``token`` or ``None``.

    Every failure (malformed, forged, expired) yields ``None`` so callers
    cannot tell them apart.
    """

    payload_segment, separator, signature = token.partition(".")
    if not separator:
        return None

    try:
        payload = _b64decode(payload_segment)
    except ValueError:
        return None

    if not hmac.compare_digest(_sign(payload, secret).encode("ascii"), signature.encode("utf-8")):
        return None

    try:
        claims = json.loads(payload)
    except ValueError:
        return None
    if not isinstance(claims, dict):
        return None

    identity = claims.get("email")
    expires_at = claims.get("exp")
    if not isinstance(identity, str) or not identity:
        return None
    if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        return None

    current = time.time() if now is None else now
    if expires_at < int(current):
        return None
    return identity

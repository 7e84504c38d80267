"""Tests for signed session tokens."""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
import unittest

from waitlist.signing import SESSION_MAX_AGE, mint_session_token, verify_session_token

SECRET = "s" * 40
OTHER_SECRET = "o" * 40
_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


class SessionTokenTests(unittest.TestCase):
    def test_roundtrip_returns_identity(self):
        for identity in ("a@x.com", "Admin@Example.org", "ünïcode@example.com"):
            token = mint_session_token(identity, SECRET)
            self.assertEqual(verify_session_token(token, SECRET), identity)

    def test_token_is_cookie_safe(self):
        token = mint_session_token("a@x.com", SECRET)
        self.assertEqual(token.count("."), 1)
        self.assertTrue(set(token) <= set(_ALPHABET + "."))

    def test_payload_carries_expiry_24h_ahead(self):
        now = 1_700_000_000
        token = mint_session_token("a@x.com", SECRET, now=now)
        segment = token.split(".")[0]
        payload = json.loads(base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4)))
        self.assertEqual(payload, {"email": "a@x.com", "exp": now + SESSION_MAX_AGE})

    def test_other_secret_is_rejected(self):
        token = mint_session_token("a@x.com", SECRET)
        self.assertIsNone(verify_session_token(token, OTHER_SECRET))

    def test_expired_token_is_rejected(self):
        issued = time.time() - SESSION_MAX_AGE - 1
        token = mint_session_token("a@x.com", SECRET, now=issued)
        self.assertIsNone(verify_session_token(token, SECRET))

    def test_token_valid_until_expiry(self):
        now = 1_700_000_000
        token = mint_session_token("a@x.com", SECRET, now=now)
        self.assertEqual(verify_session_token(token, SECRET, now=now + SESSION_MAX_AGE), "a@x.com")
        self.assertIsNone(verify_session_token(token, SECRET, now=now + SESSION_MAX_AGE + 1))

    def test_any_payload_character_change_is_rejected(self):
        token = mint_session_token("a@x.com", SECRET)
        payload, signature = token.split(".")
        for index, original in enumerate(payload):
            for replacement in (_ALPHABET[(_ALPHABET.index(original) + 1) % 64], "*"):
                tampered = payload[:index] + replacement + payload[index + 1:]
                with self.subTest(index=index, replacement=replacement):
                    self.assertIsNone(verify_session_token(f"{tampered}.{signature}", SECRET))

    def test_signature_change_is_rejected(self):
        token = mint_session_token("a@x.com", SECRET)
        payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        self.assertIsNone(verify_session_token(f"{payload}.{flipped}", SECRET))

    def test_malformed_tokens_are_rejected(self):
        for token in ("", "no-separator", ".", "!!!.sig", "abc.def.ghi", "é.x"):
            with self.subTest(token=token):
                self.assertIsNone(verify_session_token(token, SECRET))

    def test_signed_but_malformed_payload_is_rejected(self):
        def forge(payload: bytes) -> str:
            segment = base64.urlsafe_b64encode(payload).rstrip(b"=").decode()
            digest = hmac.new(SECRET.encode(), payload, hashlib.sha256).digest()
            return f"{segment}.{base64.urlsafe_b64encode(digest).rstrip(b'=').decode()}"

        for payload in (b"not json", b"[1, 2]", b'{"email": "a@x.com"}', b'{"exp": 9999999999}',
                        b'{"email": "a@x.com", "exp": "never"}'):
            with self.subTest(payload=payload):
                self.assertIsNone(verify_session_token(forge(payload), SECRET))

        self.assertEqual(
            verify_session_token(forge(b'{"email": "a@x.com", "exp": 9999999999}'), SECRET),
            "a@x.com",
        )


if __name__ == "__main__":  # pragma: no cover
    unittest.main()

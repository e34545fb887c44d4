"""Payload signing, key hashing and secret generation."""

from __future__ import annotations

import hashlib
import hmac
import secrets

WEBHOOK_SECRET_PREFIX = "whsec_"
API_KEY_PREFIX = "nw_"
API_KEY_DISPLAY_PREFIX_LENGTH = 7


def sign(payload: bytes, secret: str) -> str:
    """Return the hex HMAC-SHA256 of ``payload`` keyed by ``secret``.

    The digest is computed over the exact bytes sent on the wire, so the
    receiver can verify it against the raw request body.
    """
    if not secret:
        raise ValueError("Webhook secret must not be empty")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify(payload: bytes, secret: str, signature: str) -> bool:
    """Constant-time check of a received signature (receiver side)."""
    return hmac.compare_digest(sign(payload, secret), signature)


def generate_webhook_secret() -> str:
    """Generate a webhook signing secret (shown to the owner once)."""
    return f"{WEBHOOK_SECRET_PREFIX}{secrets.token_hex(24)}"


def generate_api_key() -> str:
    """Generate a secure random API key (shown once)."""
    return f"{API_KEY_PREFIX}{secrets.token_hex(24)}"


def hash_api_key(api_key: str) -> str:
    """Hash API key using SHA-256 (never store plaintext)."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def api_key_prefix(api_key: str) -> str:
    return api_key[:API_KEY_DISPLAY_PREFIX_LENGTH]

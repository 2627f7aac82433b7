"""Reference generation and webhook signature helpers."""

from __future__ import annotations

import hashlib
import hmac
import secrets


def generate_reference(prefix: str = "", nbytes: int = 8) -> str:
    """Return a fresh reference built from ``nbytes`` random bytes."""
    return f"{prefix}{secrets.token_hex(nbytes)}"


def sign_payload(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """Check an HMAC-SHA256 hex signature in constant time."""
    if not signature:
        return False
    return hmac.compare_digest(sign_payload(payload, secret), signature.strip().lower())


__all__ = ["generate_reference", "sign_payload", "verify_signature"]

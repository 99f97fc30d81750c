from __future__ import annotations

import hashlib

KEY_LENGTH = 32


def derive_key(secret: str) -> bytes:
    """Derive a 256-bit AES key from an arbitrary-length secret string."""
    return hashlib.sha256(secret.encode("utf-8")).digest()

from __future__ import annotations

import hashlib
import hmac
import secrets

from credentials import codec

API_KEY_PREFIX = "clst_"
INVITATION_TOKEN_PREFIX = "inv_"
API_KEY_RANDOM_BYTES = 36
INVITATION_TOKEN_RANDOM_BYTES = 32
MASK_MARKER = "..."


def _hmac_hex(value: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).hexdigest()


def hash_api_key(value: str, secret: str) -> str:
    return _hmac_hex(value, secret)


def legacy_hash_api_key(value: str) -> str:
    """Unkeyed SHA-256, only for matching keys stored before keyed hashing.

    Never store this form for newly issued keys.
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def api_key_lookup_hashes(value: str, secret: str) -> tuple[str, str]:
    return hash_api_key(value, secret), legacy_hash_api_key(value)


def hash_one_time_token(value: str, secret: str) -> str:
    return _hmac_hex(value, secret)


def generate_api_key() -> str:
    return f"{API_KEY_PREFIX}{codec.encode(secrets.token_bytes(API_KEY_RANDOM_BYTES))}"


def generate_invitation_token() -> str:
    return f"{INVITATION_TOKEN_PREFIX}{codec.encode(secrets.token_bytes(INVITATION_TOKEN_RANDOM_BYTES))}"


def mask_api_key(value: str) -> str:
    # Values this short are returned as-is; see DESIGN.md.
    if len(value) <= 10:
        return value
    return f"{value[:6]}{MASK_MARKER}{value[-4:]}"

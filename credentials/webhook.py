from __future__ import annotations

import hashlib
import hmac
import math
import re
from collections.abc import Mapping

SIGNATURE_PREFIX = "sha256="
_DIGITS = re.compile(r"[0-9]+")


def compute_github_webhook_signature(secret: str, payload_raw: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload_raw, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_github_webhook_signature(
    secret: str | None,
    payload_raw: bytes,
    signature_header: str | None,
) -> bool:
    """Check an ``X-Hub-Signature-256`` header against the raw request body.

    The HMAC must be computed over the exact bytes received; a parsed and
    re-serialized body will not match.
    """
    secret = (secret or "").strip()
    provided = (signature_header or "").strip()
    if not secret or not provided.startswith(SIGNATURE_PREFIX):
        return False

    expected = compute_github_webhook_signature(secret, bytes(payload_raw)).encode("utf-8")
    actual = provided.encode("utf-8")
    if len(expected) != len(actual):
        return False
    return hmac.compare_digest(expected, actual)


def parse_github_webhook_installation_id(payload) -> int | None:
    if not isinstance(payload, Mapping):
        return None
    installation = payload.get("installation")
    if not isinstance(installation, Mapping):
        return None

    raw_id = installation.get("id")
    if isinstance(raw_id, bool):
        return None
    if isinstance(raw_id, int):
        return raw_id if raw_id >= 0 else None
    if isinstance(raw_id, float):
        if math.isfinite(raw_id) and raw_id >= 0 and raw_id.is_integer():
            return int(raw_id)
        return None
    if isinstance(raw_id, str) and _DIGITS.fullmatch(raw_id.strip()):
        return int(raw_id.strip())
    return None

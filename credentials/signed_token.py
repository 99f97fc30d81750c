from __future__ import annotations

import hashlib
import hmac
import math
import time
from typing import Generic, TypeVar

from claustrum.constants import LOGGER, MIN_TTL_SECONDS
from credentials import codec
from credentials.errors import RejectReason, TokenRejected
from credentials.models import TokenKind

P = TypeVar("P")


def sign(payload_encoded: str, secret: str) -> str:
    digest = hmac.new(
        secret.encode("utf-8"), payload_encoded.encode("ascii"), hashlib.sha256
    ).digest()
    return codec.encode(digest)


def constant_time_equals(actual: str | bytes, expected: str | bytes) -> bool:
    """Compare two values without leaking where they first differ.

    Lengths are compared up front; only the contents comparison is
    constant-time.
    """
    if isinstance(actual, str):
        actual = actual.encode("utf-8")
    if isinstance(expected, str):
        expected = expected.encode("utf-8")
    if len(actual) != len(expected):
        return False
    return hmac.compare_digest(actual, expected)


def is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class SignedTokenScheme(Generic[P]):
    """HMAC-SHA256 signed, plaintext-visible tokens.

    Wire format: ``<prefix>.<base64url(payload json)>.<base64url(hmac)>``.
    ``iat``/``exp`` are epoch seconds and are added on issue.
    """

    def __init__(self, kind: TokenKind, payload_type: type[P]) -> None:
        self.kind = kind
        self.payload_type = payload_type
        self.required_fields = payload_type.field_names()

    def issue(
        self,
        fields: dict,
        secret: str,
        ttl_seconds: float,
        *,
        now: float | None = None,
    ) -> str:
        if not secret:
            raise ValueError(f"A secret is required to issue {self.kind.name} tokens.")
        if not is_finite_number(ttl_seconds):
            raise ValueError(f"ttl_seconds must be a finite number, got {ttl_seconds!r}.")
        issued_at = int(time.time() if now is None else now)
        ttl = max(int(math.floor(ttl_seconds)), MIN_TTL_SECONDS)
        payload = {**fields, "iat": issued_at, "exp": issued_at + ttl}
        encoded = codec.encode_json(payload)
        return f"{self.kind.prefix}.{encoded}.{sign(encoded, secret)}"

    def verify(self, token: str, secret: str, *, now: float | None = None) -> P | None:
        try:
            return self._verify(token, secret, now=now)
        except TokenRejected as rejected:
            LOGGER.debug("Rejected %s token: %s", self.kind.name, rejected.reason.value)
            return None

    def _verify(self, token: str, secret: str, *, now: float | None = None) -> P:
        if not secret:
            raise TokenRejected(RejectReason.MISSING_SECRET)
        if not isinstance(token, str):
            raise TokenRejected(RejectReason.MALFORMED)

        parts = token.split(".")
        if len(parts) != 3 or parts[0] != self.kind.prefix:
            raise TokenRejected(RejectReason.MALFORMED)
        _, encoded, signature = parts

        try:
            expected = sign(encoded, secret)
        except UnicodeEncodeError:
            raise TokenRejected(RejectReason.MALFORMED)
        if not constant_time_equals(signature, expected):
            raise TokenRejected(RejectReason.SIGNATURE_MISMATCH)

        try:
            payload = codec.decode_json(encoded)
        except codec.DecodeError:
            raise TokenRejected(RejectReason.MALFORMED)

        if any(not payload.get(name) for name in self.required_fields):
            raise TokenRejected(RejectReason.MISSING_FIELD)
        if not is_finite_number(payload["exp"]) or not is_finite_number(payload["iat"]):
            raise TokenRejected(RejectReason.MALFORMED)

        current = time.time() if now is None else now
        if payload["exp"] <= int(current):
            raise TokenRejected(RejectReason.EXPIRED)
        return self.payload_type.from_dict(payload)

from __future__ import annotations

import os
import time

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from claustrum.constants import LOGGER
from credentials import codec
from credentials.api_key import hash_one_time_token
from credentials.consumed_store import ConsumedTokenStore
from credentials.errors import RejectReason, TokenRejected
from credentials.keys import derive_key
from credentials.models import OneTimeKeyPayload, TokenKind
from credentials.signed_token import is_finite_number

IV_LENGTH = 12
TAG_LENGTH = 16
PREFIX = TokenKind.ONE_TIME_KEY.prefix


def _now_ms() -> int:
    return int(time.time() * 1000)


def issue_one_time_key_token(
    *,
    api_key_id: str,
    api_key: str,
    user_id: str,
    expires_at_unix_ms: int,
    secret: str,
) -> str:
    """Encrypt a freshly generated API key for a single hand-off.

    Wire format: ``otk1.<iv>.<ciphertext>.<tag>`` using AES-256-GCM with a
    random 12-byte IV per call.
    """
    if not secret:
        raise ValueError("A secret is required to issue one-time key tokens.")
    payload = OneTimeKeyPayload(
        api_key_id=api_key_id,
        api_key=api_key,
        user_id=user_id,
        exp=expires_at_unix_ms,
    )
    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(derive_key(secret)).encrypt(
        iv, codec.dump_json(payload.to_dict()).encode("utf-8"), None
    )
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return f"{PREFIX}.{codec.encode(iv)}.{codec.encode(ciphertext)}.{codec.encode(tag)}"


def _decrypt(token: str, secret: str) -> dict:
    if not secret:
        raise TokenRejected(RejectReason.MISSING_SECRET)
    if not isinstance(token, str):
        raise TokenRejected(RejectReason.MALFORMED)

    parts = token.split(".")
    if len(parts) != 4 or parts[0] != PREFIX:
        raise TokenRejected(RejectReason.MALFORMED)

    try:
        iv, ciphertext, tag = (codec.decode(part) for part in parts[1:])
    except codec.DecodeError:
        raise TokenRejected(RejectReason.MALFORMED)
    if len(iv) != IV_LENGTH or len(tag) != TAG_LENGTH:
        raise TokenRejected(RejectReason.MALFORMED)

    try:
        plaintext = AESGCM(derive_key(secret)).decrypt(iv, ciphertext + tag, None)
    except InvalidTag:
        raise TokenRejected(RejectReason.DECRYPTION_FAILURE)

    try:
        return codec.load_json(plaintext)
    except codec.DecodeError:
        raise TokenRejected(RejectReason.MALFORMED)


def _verify(token: str, secret: str, *, now_ms: int | None = None) -> OneTimeKeyPayload:
    payload = _decrypt(token, secret)
    if any(not payload.get(name) for name in OneTimeKeyPayload.field_names()):
        raise TokenRejected(RejectReason.MISSING_FIELD)
    if not is_finite_number(payload["exp"]):
        raise TokenRejected(RejectReason.MALFORMED)

    current = _now_ms() if now_ms is None else now_ms
    if current > payload["exp"]:
        raise TokenRejected(RejectReason.EXPIRED)
    return OneTimeKeyPayload.from_dict(payload)


def verify_one_time_key_token(
    token: str, secret: str, *, now_ms: int | None = None
) -> OneTimeKeyPayload | None:
    """Decrypt and validate a one-time key token.

    Verification is idempotent: the same token verifies until it expires.
    Use ``redeem_one_time_key_token`` to enforce a single retrieval.
    """
    try:
        return _verify(token, secret, now_ms=now_ms)
    except TokenRejected as rejected:
        LOGGER.debug("Rejected ONE_TIME_KEY token: %s", rejected.reason.value)
        return None


async def redeem_one_time_key_token(
    token: str,
    secret: str,
    store: ConsumedTokenStore,
    *,
    now_ms: int | None = None,
) -> OneTimeKeyPayload | None:
    try:
        payload = _verify(token, secret, now_ms=now_ms)
        if not await store.mark(hash_one_time_token(token, secret), int(payload.exp)):
            raise TokenRejected(RejectReason.ALREADY_CONSUMED)
    except TokenRejected as rejected:
        LOGGER.debug("Rejected ONE_TIME_KEY redemption: %s", rejected.reason.value)
        return None
    return payload

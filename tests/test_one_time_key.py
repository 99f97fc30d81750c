import asyncio
import base64
import string
import time

import pytest

from credentials import codec
from credentials.consumed_store import MemoryConsumedTokenStore
from credentials.models import OneTimeKeyPayload
from credentials.one_time_key import (
    issue_one_time_key_token,
    redeem_one_time_key_token,
    verify_one_time_key_token,
)
from tests.token_helpers import flip_byte, replace_segment


def _issue(secret: str = "test-secret", *, expires_in_ms: int = 60_000, **overrides) -> str:
    args = {
        "api_key_id": "api-key-1",
        "api_key": "clst_example_plain_key",
        "user_id": "user-1",
        "expires_at_unix_ms": int(time.time() * 1000) + expires_in_ms,
        "secret": secret,
    }
    args.update(overrides)
    return issue_one_time_key_token(**args)


def test_one_time_key_token_verifies_with_matching_secret(secret) -> None:
    token = _issue(secret)

    payload = verify_one_time_key_token(token, secret)

    assert payload is not None
    assert payload.api_key_id == "api-key-1"
    assert payload.user_id == "user-1"
    assert payload.api_key == "clst_example_plain_key"


def test_one_time_key_token_wire_format(secret) -> None:
    token = _issue(secret)
    prefix, iv, ciphertext, tag = token.split(".")

    assert prefix == "otk1"
    assert len(codec.decode(iv)) == 12
    assert len(codec.decode(tag)) == 16
    assert b"clst_example_plain_key" not in codec.decode(ciphertext)
    assert "clst_example_plain_key" not in token


def test_one_time_key_token_uses_fresh_iv(secret) -> None:
    first = _issue(secret)
    second = _issue(secret)

    assert first.split(".")[1] != second.split(".")[1]
    assert first.split(".")[2] != second.split(".")[2]


def test_one_time_key_token_fails_with_wrong_secret_or_expired_payload(secret) -> None:
    token = _issue(secret, expires_in_ms=-1_000)

    assert verify_one_time_key_token(token, "another-secret") is None
    assert verify_one_time_key_token(token, secret) is None


def test_one_time_key_expiry_is_in_milliseconds(secret) -> None:
    token = _issue(secret, expires_at_unix_ms=1_700_000_000_500)

    assert verify_one_time_key_token(token, secret, now_ms=1_700_000_000_500) is not None
    assert verify_one_time_key_token(token, secret, now_ms=1_700_000_000_501) is None


@pytest.mark.parametrize("segment", [2, 3])
def test_flipping_any_ciphertext_or_tag_byte_rejects(secret, segment) -> None:
    token = _issue(secret)
    length = len(codec.decode(token.split(".")[segment]))

    for index in range(length):
        tampered = replace_segment(token, segment, flip_byte(token.split(".")[segment], index))
        assert verify_one_time_key_token(tampered, secret) is None


def test_flipping_iv_rejects(secret) -> None:
    token = _issue(secret)

    tampered = replace_segment(token, 1, flip_byte(token.split(".")[1], 0))

    assert verify_one_time_key_token(tampered, secret) is None


@pytest.mark.parametrize(
    "mangle",
    [
        lambda token: token.rsplit(".", 1)[0],
        lambda token: token + ".extra",
        lambda token: token.replace("otk1.", "otk2.", 1),
        lambda token: replace_segment(token, 1, codec.encode(b"short")),
        lambda token: replace_segment(token, 3, codec.encode(b"\x00" * 8)),
        lambda token: replace_segment(token, 2, "not*base64"),
    ],
)
def test_malformed_one_time_key_tokens_are_rejected(secret, mangle) -> None:
    assert verify_one_time_key_token(mangle(_issue(secret)), secret) is None


def test_one_time_key_token_requires_every_field(secret) -> None:
    token = _issue(secret, user_id="")

    assert verify_one_time_key_token(token, secret) is None


def test_one_time_key_token_rejects_empty_secret(secret) -> None:
    assert verify_one_time_key_token(_issue(secret), "") is None


def test_verify_is_idempotent_until_expiry(secret) -> None:
    token = _issue(secret)

    assert verify_one_time_key_token(token, secret) is not None
    assert verify_one_time_key_token(token, secret) is not None


def test_payload_repr_hides_plaintext_key() -> None:
    payload = OneTimeKeyPayload("api-key-1", "clst_secret_value", "user-1", 1)

    assert "clst_secret_value" not in repr(payload)


@pytest.mark.asyncio
async def test_redeem_succeeds_only_once(secret) -> None:
    store = MemoryConsumedTokenStore()
    token = _issue(secret)

    first = await redeem_one_time_key_token(token, secret, store)
    second = await redeem_one_time_key_token(token, secret, store)

    assert first is not None
    assert first.api_key == "clst_example_plain_key"
    assert second is None


@pytest.mark.asyncio
async def test_redeem_rejects_invalid_token_without_marking(secret) -> None:
    store = MemoryConsumedTokenStore()
    token = _issue(secret)

    assert await redeem_one_time_key_token(token, "wrong-secret", store) is None
    assert await redeem_one_time_key_token(token, secret, store) is not None


@pytest.mark.asyncio
async def test_concurrent_redemptions_allow_exactly_one(secret) -> None:
    store = MemoryConsumedTokenStore()
    token = _issue(secret)

    results = await asyncio.gather(
        *(redeem_one_time_key_token(token, secret, store) for _ in range(10))
    )

    assert sum(result is not None for result in results) == 1


def _equivalent_segment(segment: str) -> str:
    """Return a different spelling of ``segment`` that a lenient decoder maps to the same bytes."""
    alphabet = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"
    last = alphabet.index(segment[-1])
    return segment[:-1] + alphabet[last ^ 0x01]


def test_equivalent_tag_spelling_is_rejected(secret) -> None:
    token = _issue(secret)
    tag = token.split(".")[3]
    variant = _equivalent_segment(tag)

    lenient = base64.urlsafe_b64decode(variant + "=" * (-len(variant) % 4))

    assert lenient == codec.decode(tag)
    assert verify_one_time_key_token(replace_segment(token, 3, variant), secret) is None


@pytest.mark.asyncio
async def test_redeem_rejects_equivalent_token_spelling(secret) -> None:
    store = MemoryConsumedTokenStore()
    token = _issue(secret)
    variant = replace_segment(token, 3, _equivalent_segment(token.split(".")[3]))

    assert await redeem_one_time_key_token(token, secret, store) is not None
    assert await redeem_one_time_key_token(variant, secret, store) is None


@pytest.mark.asyncio
async def test_redeem_with_injected_clock_succeeds_only_once(secret) -> None:
    store = MemoryConsumedTokenStore()
    token = _issue(secret, expires_at_unix_ms=1_700_000_000_000)

    first = await redeem_one_time_key_token(token, secret, store, now_ms=1_700_000_000_000)
    second = await redeem_one_time_key_token(token, secret, store, now_ms=1_700_000_000_000)

    assert first is not None
    assert second is None

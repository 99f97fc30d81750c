import hashlib
import hmac
import re

from credentials import codec
from credentials.api_key import (
    api_key_lookup_hashes,
    generate_api_key,
    generate_invitation_token,
    hash_api_key,
    hash_one_time_token,
    legacy_hash_api_key,
    mask_api_key,
)

URL_SAFE = re.compile(r"[A-Za-z0-9_-]+")


def test_generate_api_key_shape() -> None:
    key = generate_api_key()

    assert key.startswith("clst_")
    assert URL_SAFE.fullmatch(key[len("clst_") :])
    assert len(codec.decode(key[len("clst_") :])) == 36


def test_generate_api_key_is_unique() -> None:
    assert len({generate_api_key() for _ in range(200)}) == 200


def test_generate_invitation_token_shape() -> None:
    token = generate_invitation_token()

    assert token.startswith("inv_")
    assert len(codec.decode(token[len("inv_") :])) == 32
    assert token != generate_invitation_token()


def test_hash_api_key_is_keyed_hmac() -> None:
    expected = hmac.new(b"hash-secret", b"clst_abc", hashlib.sha256).hexdigest()

    assert hash_api_key("clst_abc", "hash-secret") == expected
    assert hash_api_key("clst_abc", "other-secret") != expected


def test_legacy_hash_is_unkeyed_sha256() -> None:
    assert legacy_hash_api_key("clst_abc") == hashlib.sha256(b"clst_abc").hexdigest()


def test_lookup_hashes_cover_both_schemes() -> None:
    keyed, legacy = api_key_lookup_hashes("clst_abc", "hash-secret")

    assert keyed == hash_api_key("clst_abc", "hash-secret")
    assert legacy == legacy_hash_api_key("clst_abc")


def test_hash_one_time_token_is_keyed() -> None:
    assert hash_one_time_token("otk1.a.b.c", "s1") != hash_one_time_token("otk1.a.b.c", "s2")
    assert len(hash_one_time_token("otk1.a.b.c", "s1")) == 64


def test_mask_short_values_unchanged() -> None:
    assert mask_api_key("") == ""
    assert mask_api_key("abc") == "abc"
    assert mask_api_key("0123456789") == "0123456789"


def test_mask_long_values() -> None:
    assert mask_api_key("0123456789a") == "012345...789a"

    key = generate_api_key()
    masked = mask_api_key(key)

    assert masked == f"{key[:6]}...{key[-4:]}"
    assert key[6:-4] not in masked

from __future__ import annotations

import base64
import binascii
import json
import re

_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


class DecodeError(ValueError):
    pass


def encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(text: str) -> bytes:
    """Decode unpadded base64url text.

    Only the canonical encoding of a byte string is accepted: characters
    outside the alphabet and nonzero unused trailing bits both fail.
    """
    if not isinstance(text, str) or not _ALPHABET.fullmatch(text):
        raise DecodeError("Invalid base64url input.")
    if len(text) % 4 == 1:
        raise DecodeError("Invalid base64url length.")
    padded = text + "=" * (-len(text) % 4)
    try:
        data = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as error:
        raise DecodeError("Invalid base64url input.") from error
    if encode(data) != text:
        raise DecodeError("Non-canonical base64url input.")
    return data


def encode_text(value: str) -> str:
    return encode(value.encode("utf-8"))


def decode_text(text: str) -> str:
    raw = decode(text)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as error:
        raise DecodeError("Encoded text is not valid UTF-8.") from error


def dump_json(payload: dict) -> str:
    return json.dumps(payload, separators=(",", ":"))


def load_json(raw: str | bytes) -> dict:
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise DecodeError("Payload is not valid JSON.") from error
    if not isinstance(payload, dict):
        raise DecodeError("Payload must be a JSON object.")
    return payload


def encode_json(payload: dict) -> str:
    return encode_text(dump_json(payload))


def decode_json(text: str) -> dict:
    return load_json(decode_text(text))

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from credentials.api_key import api_key_lookup_hashes
from credentials.session_token import verify_session_token
from credentials.signed_token import constant_time_equals

_BEARER = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


@dataclass(frozen=True)
class ApiKeyRecord:
    api_key_id: str
    user_id: str
    revoked: bool = False


@dataclass(frozen=True)
class AuthContext:
    method: str
    user_id: str
    api_key_id: str | None = None
    project_access_bypass: bool = False


ApiKeyLookup = Callable[[tuple[str, str]], Awaitable["ApiKeyRecord | None"]]


def extract_bearer_token(header_value: str | None) -> str | None:
    if not header_value:
        return None
    match = _BEARER.match(header_value)
    if not match:
        return None
    return match.group(1).strip() or None


async def authenticate_bearer_token(
    token: str,
    *,
    env_api_keys: list[str] | set[str],
    session_secret: str,
    api_key_hash_secret: str,
    lookup_api_key: ApiKeyLookup | None = None,
) -> AuthContext | None:
    """Resolve a bearer token to an auth context.

    Order: environment admin keys, session tokens, then stored API keys.
    ``lookup_api_key`` receives the keyed and legacy hashes and returns the
    matching record from storage, if any.
    """
    token = (token or "").strip()
    if not token:
        return None

    # No early exit: every configured key is compared.
    matches = [constant_time_equals(token, key) for key in env_api_keys]
    if any(matches):
        return AuthContext(method="env_admin", user_id="env-admin", project_access_bypass=True)

    session = verify_session_token(token, session_secret)
    if session is not None:
        return AuthContext(method="session", user_id=session.sub)

    if lookup_api_key is None:
        return None
    record = await lookup_api_key(api_key_lookup_hashes(token, api_key_hash_secret))
    if record is None or record.revoked:
        return None
    return AuthContext(method="api_key", user_id=record.user_id, api_key_id=record.api_key_id)

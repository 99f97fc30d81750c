from __future__ import annotations

from starlette.requests import Request

from claustrum.constants import LOGGER
from credentials.bearer import (
    ApiKeyLookup,
    AuthContext,
    authenticate_bearer_token,
    extract_bearer_token,
)
from credentials.webhook import verify_github_webhook_signature

GITHUB_SIGNATURE_HEADER = "x-hub-signature-256"


async def verify_github_webhook_request(request: Request, secret: str | None) -> bool:
    body = await request.body()
    verified = verify_github_webhook_signature(
        secret, body, request.headers.get(GITHUB_SIGNATURE_HEADER)
    )
    if not verified:
        LOGGER.warning(
            "Rejected GitHub webhook delivery=%s event=%s",
            request.headers.get("x-github-delivery"),
            request.headers.get("x-github-event"),
        )
    return verified


async def authenticate_request(
    request: Request,
    *,
    env_api_keys: list[str] | set[str],
    session_secret: str,
    api_key_hash_secret: str,
    lookup_api_key: ApiKeyLookup | None = None,
) -> AuthContext | None:
    token = extract_bearer_token(request.headers.get("authorization"))
    if token is None:
        return None
    return await authenticate_bearer_token(
        token,
        env_api_keys=env_api_keys,
        session_secret=session_secret,
        api_key_hash_secret=api_key_hash_secret,
        lookup_api_key=lookup_api_key,
    )

from __future__ import annotations

import secrets

from claustrum.constants import DEFAULT_STATE_TTL_SECONDS
from credentials.models import GithubInstallStatePayload, TokenKind
from credentials.signed_token import SignedTokenScheme

GITHUB_INSTALL_STATE_TOKENS = SignedTokenScheme(
    TokenKind.GITHUB_INSTALL_STATE, GithubInstallStatePayload
)


def issue_github_install_state_token(
    *,
    workspace_key: str,
    actor_user_id: str,
    secret: str,
    nonce: str | None = None,
    ttl_seconds: float = DEFAULT_STATE_TTL_SECONDS,
    now: float | None = None,
) -> str:
    return GITHUB_INSTALL_STATE_TOKENS.issue(
        {
            "workspace_key": workspace_key,
            "actor_user_id": actor_user_id,
            "nonce": nonce or secrets.token_urlsafe(16),
        },
        secret,
        ttl_seconds,
        now=now,
    )


def verify_github_install_state_token(
    token: str, secret: str, *, now: float | None = None
) -> GithubInstallStatePayload | None:
    return GITHUB_INSTALL_STATE_TOKENS.verify(token, secret, now=now)

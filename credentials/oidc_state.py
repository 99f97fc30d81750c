from __future__ import annotations

from claustrum.constants import DEFAULT_STATE_TTL_SECONDS
from credentials.models import OidcStatePayload, TokenKind
from credentials.signed_token import SignedTokenScheme

OIDC_STATE_TOKENS = SignedTokenScheme(TokenKind.OIDC_STATE, OidcStatePayload)


def issue_oidc_state_token(
    *,
    workspace_key: str,
    provider_id: str,
    code_verifier: str,
    nonce: str,
    redirect_uri: str,
    secret: str,
    ttl_seconds: float = DEFAULT_STATE_TTL_SECONDS,
    now: float | None = None,
) -> str:
    """Mint the ``state`` value carried through an OIDC login redirect.

    The PKCE verifier and nonce ride inside the signed payload, so the
    callback needs no server-side record of the pending login.
    """
    return OIDC_STATE_TOKENS.issue(
        {
            "workspace_key": workspace_key,
            "provider_id": provider_id,
            "code_verifier": code_verifier,
            "nonce": nonce,
            "redirect_uri": redirect_uri,
        },
        secret,
        ttl_seconds,
        now=now,
    )


def verify_oidc_state_token(
    token: str, secret: str, *, now: float | None = None
) -> OidcStatePayload | None:
    return OIDC_STATE_TOKENS.verify(token, secret, now=now)

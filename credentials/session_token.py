from __future__ import annotations

from credentials.models import SessionPayload, TokenKind
from credentials.signed_token import SignedTokenScheme

SESSION_TOKENS = SignedTokenScheme(TokenKind.SESSION, SessionPayload)


def issue_session_token(
    user_id: str,
    secret: str,
    ttl_seconds: float,
    *,
    now: float | None = None,
) -> str:
    return SESSION_TOKENS.issue({"sub": user_id}, secret, ttl_seconds, now=now)


def verify_session_token(
    token: str, secret: str, *, now: float | None = None
) -> SessionPayload | None:
    return SESSION_TOKENS.verify(token, secret, now=now)

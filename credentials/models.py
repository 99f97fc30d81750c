from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Union


class TokenKind(str, Enum):
    SESSION = "cs1"
    OIDC_STATE = "os1"
    GITHUB_INSTALL_STATE = "gis1"
    ONE_TIME_KEY = "otk1"

    @property
    def prefix(self) -> str:
        return self.value


def token_kind(token: str) -> TokenKind | None:
    """Return the token family named by the wire prefix, if any."""
    if not isinstance(token, str):
        return None
    prefix = token.split(".", 1)[0]
    try:
        return TokenKind(prefix)
    except ValueError:
        return None


class _Payload:
    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(field.name for field in fields(cls))

    @classmethod
    def from_dict(cls, payload: dict):
        return cls(**{name: payload[name] for name in cls.field_names()})

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SessionPayload(_Payload):
    sub: str
    iat: int
    exp: int


@dataclass(frozen=True)
class OidcStatePayload(_Payload):
    workspace_key: str
    provider_id: str
    code_verifier: str
    nonce: str
    redirect_uri: str
    iat: int
    exp: int


@dataclass(frozen=True)
class GithubInstallStatePayload(_Payload):
    workspace_key: str
    actor_user_id: str
    nonce: str
    iat: int
    exp: int


@dataclass(frozen=True)
class OneTimeKeyPayload(_Payload):
    api_key_id: str
    api_key: str
    user_id: str
    # Epoch milliseconds, unlike the signed payloads.
    exp: int

    def __repr__(self) -> str:
        return (
            f"OneTimeKeyPayload(api_key_id={self.api_key_id!r}, api_key='***', "
            f"user_id={self.user_id!r}, exp={self.exp!r})"
        )


SignedPayload = Union[SessionPayload, OidcStatePayload, GithubInstallStatePayload]
TokenPayload = Union[SignedPayload, OneTimeKeyPayload]

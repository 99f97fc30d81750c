from __future__ import annotations

from enum import Enum


class RejectReason(str, Enum):
    MALFORMED = "malformed_token"
    SIGNATURE_MISMATCH = "signature_mismatch"
    DECRYPTION_FAILURE = "decryption_failure"
    EXPIRED = "expired_token"
    MISSING_FIELD = "missing_field"
    MISSING_SECRET = "missing_secret"
    ALREADY_CONSUMED = "already_consumed"


class TokenRejected(RuntimeError):
    """Internal verification failure.

    Raised inside verification helpers only. Public ``verify_*`` functions
    collapse it to ``None`` so callers cannot tell failure causes apart.
    """

    def __init__(self, reason: RejectReason, message: str | None = None) -> None:
        super().__init__(message or reason.value)
        self.reason = reason

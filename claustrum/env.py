from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .constants import (
    DEFAULT_ONE_TIME_TOKEN_TTL_SECONDS,
    DEFAULT_SESSION_TTL_SECONDS,
    DEV_API_KEY_HASH_SECRET,
    DEV_GITHUB_STATE_SECRET,
    DEV_ONE_TIME_TOKEN_SECRET,
    DEV_SESSION_SECRET,
    LOG_LEVELS,
    LOGGER,
    MIN_SESSION_TTL_SECONDS,
    MIN_TTL_SECONDS,
)

_LOGGING_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv_env(key: str) -> set[str]:
    raw = os.getenv(key, "")
    if not raw.strip():
        return set()
    return {item.strip() for item in raw.split(",") if item.strip()}


def _get_env_str(key: str) -> str | None:
    return os.getenv(key, "").strip() or None


def _get_ttl_env(key: str, default: int, minimum: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    return max(int(value), minimum)


def normalize_log_level(value: str | None) -> str:
    level = (value or "error").strip().lower()
    return level if level in LOG_LEVELS else "error"


@dataclass(frozen=True)
class SecurityConfig:
    session_secret: str = field(repr=False)
    api_key_hash_secret: str = field(repr=False)
    one_time_token_secret: str = field(repr=False)
    github_state_secret: str = field(repr=False)
    github_webhook_secret: str | None = field(default=None, repr=False)
    session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    one_time_token_ttl_seconds: int = DEFAULT_ONE_TIME_TOKEN_TTL_SECONDS
    env_api_keys: frozenset[str] = field(default_factory=frozenset, repr=False)
    log_level: str = "error"


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=False)


def load_security_config() -> SecurityConfig:
    session_secret = _get_env_str("MEMORY_CORE_AUTH_SESSION_SECRET")
    if session_secret is None:
        LOGGER.warning(
            "MEMORY_CORE_AUTH_SESSION_SECRET is not set; using the development secret."
        )

    return SecurityConfig(
        session_secret=session_secret or DEV_SESSION_SECRET,
        api_key_hash_secret=(
            _get_env_str("MEMORY_CORE_API_KEY_HASH_SECRET") or DEV_API_KEY_HASH_SECRET
        ),
        one_time_token_secret=(
            _get_env_str("MEMORY_CORE_ONE_TIME_TOKEN_SECRET")
            or session_secret
            or DEV_ONE_TIME_TOKEN_SECRET
        ),
        github_state_secret=(
            _get_env_str("MEMORY_CORE_GITHUB_STATE_SECRET")
            or session_secret
            or DEV_GITHUB_STATE_SECRET
        ),
        github_webhook_secret=_get_env_str("GITHUB_APP_WEBHOOK_SECRET"),
        session_ttl_seconds=_get_ttl_env(
            "MEMORY_CORE_AUTH_SESSION_TTL_SECONDS",
            DEFAULT_SESSION_TTL_SECONDS,
            MIN_SESSION_TTL_SECONDS,
        ),
        one_time_token_ttl_seconds=_get_ttl_env(
            "MEMORY_CORE_ONE_TIME_TOKEN_TTL_SECONDS",
            DEFAULT_ONE_TIME_TOKEN_TTL_SECONDS,
            MIN_TTL_SECONDS,
        ),
        env_api_keys=frozenset(
            parse_csv_env("MEMORY_CORE_API_KEY") | parse_csv_env("MEMORY_CORE_API_KEYS")
        ),
        log_level=normalize_log_level(os.getenv("MEMORY_CORE_LOG_LEVEL")),
    )


def setup_logging(level: str) -> None:
    """Configure the credentials logger at an explicitly passed level."""
    level = normalize_log_level(level)
    if level == "silent":
        LOGGER.disabled = True
        return
    LOGGER.disabled = False
    logging.basicConfig(level=_LOGGING_LEVELS[level])
    LOGGER.setLevel(_LOGGING_LEVELS[level])

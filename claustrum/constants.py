from __future__ import annotations

import logging

LOGGER = logging.getLogger("claustrum.credentials")
APP_VERSION = "0.1.0"

MIN_TTL_SECONDS = 60
DEFAULT_STATE_TTL_SECONDS = 600
DEFAULT_SESSION_TTL_SECONDS = 43200
MIN_SESSION_TTL_SECONDS = 300
DEFAULT_ONE_TIME_TOKEN_TTL_SECONDS = 900

DEV_SESSION_SECRET = "claustrum-dev-session-secret-change-me"
DEV_API_KEY_HASH_SECRET = "claustrum-dev-api-key-hash-secret-change-me"
DEV_ONE_TIME_TOKEN_SECRET = "claustrum-dev-one-time-token-secret-change-me"
DEV_GITHUB_STATE_SECRET = "claustrum-dev-github-state-secret-change-me"

LOG_LEVELS = ("debug", "info", "warn", "error", "silent")

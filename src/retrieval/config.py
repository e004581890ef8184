"""Central configuration constants for talking to the GitHub REST API."""

from __future__ import annotations

import os
from typing import Optional

from src.secrets import resolve_github_token

GITHUB_TOKEN: Optional[str] = resolve_github_token()
USER_AGENT = "spec-reactions/1.0"
BASE_URL = "https://api.github.com"
TARGET_HOST = "github.com"
PER_PAGE = 100
REQUEST_TIMEOUT = 90
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "6"))  # transient network / 5xx failures
BACKOFF_BASE_SEC = 2
RATE_LIMIT_MAX_ATTEMPTS = int(os.getenv("RATE_LIMIT_MAX_ATTEMPTS", "3"))
MAX_WAIT_ON_RATE_LIMIT = int(os.getenv("MAX_WAIT_ON_RATE_LIMIT", str(60 * 60)))
REGISTRY_URL = "https://w3c.github.io/browser-specs/index.json"

__all__ = [
    "GITHUB_TOKEN",
    "USER_AGENT",
    "BASE_URL",
    "TARGET_HOST",
    "PER_PAGE",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "BACKOFF_BASE_SEC",
    "RATE_LIMIT_MAX_ATTEMPTS",
    "MAX_WAIT_ON_RATE_LIMIT",
    "REGISTRY_URL",
]

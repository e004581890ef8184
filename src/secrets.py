"""Utilities for loading the GitHub credential from the environment or a local file."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_SECRETS_FILENAME = "local_secrets.json"
TOKEN_ENV_VAR = "GITHUB_TOKEN"


def _default_secrets_path() -> Path:
    root = Path(__file__).resolve().parents[1]
    return root / DEFAULT_SECRETS_FILENAME


def load_local_secrets(path: Optional[str | Path] = None) -> Dict[str, Any]:
    """Load secrets from a gitignored JSON file; return {} when unavailable or unreadable."""

    candidate = path or os.getenv("LOCAL_SECRETS_FILE") or _default_secrets_path()
    secrets_path = Path(candidate).expanduser()
    if not secrets_path.exists():
        return {}
    try:
        with secrets_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def resolve_github_token(secrets: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """Prefer $GITHUB_TOKEN, then `github_token` from the local secrets file."""

    token = os.getenv(TOKEN_ENV_VAR)
    if token:
        return token.strip() or None
    secrets = load_local_secrets() if secrets is None else secrets
    value = secrets.get("github_token")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


__all__ = [
    "DEFAULT_SECRETS_FILENAME",
    "TOKEN_ENV_VAR",
    "load_local_secrets",
    "resolve_github_token",
]

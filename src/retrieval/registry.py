"""Resolve the set of GitHub repositories named by the specification registry."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional
from urllib.parse import urlsplit

import requests

from .config import REQUEST_TIMEOUT, TARGET_HOST, USER_AGENT
from .models import Repository


class RegistryError(RuntimeError):
    """The registry document could not be read or is not a JSON array."""


def load_registry(source: str | Path) -> List[Any]:
    """Read registry entries from a local JSON file or an http(s) URL."""
    source_str = str(source)
    if source_str.startswith(("http://", "https://")):
        try:
            resp = requests.get(source_str, headers={"User-Agent": USER_AGENT}, timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise RegistryError(f"Could not download registry from {source_str}: {exc}") from exc
    else:
        try:
            with Path(source_str).expanduser().open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            raise RegistryError(f"Could not read registry file {source_str}: {exc}") from exc

    if not isinstance(data, list):
        raise RegistryError(f"Registry at {source_str} is not a JSON array")
    return data


def repository_urls(entries: Iterable[Any]) -> Iterator[str]:
    """Yield the nightly repository URL of every entry that has one."""
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        nightly = entry.get("nightly")
        if not isinstance(nightly, dict):
            continue
        url = nightly.get("repository")
        if isinstance(url, str) and url:
            yield url


def parse_repository_url(url: str) -> Optional[Repository]:
    """Return the repository for `https://github.com/owner/name`, or None for any other shape."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if parts.hostname != TARGET_HOST:
        return None
    segments = [s for s in parts.path.split("/") if s]
    if len(segments) != 2:
        return None
    owner, name = segments
    return Repository(owner=owner, name=name)


def collect_repositories(entries: Iterable[Any]) -> List[Repository]:
    """Deduplicated GitHub repositories from the registry, sorted by URL."""
    repos = set()
    for url in set(repository_urls(entries)):
        repo = parse_repository_url(url)
        if repo is not None:
            repos.add(repo)
    return sorted(repos, key=lambda r: r.url)


__all__ = [
    "RegistryError",
    "load_registry",
    "repository_urls",
    "parse_repository_url",
    "collect_repositories",
]

"""Lazy issue and reaction readers for a single repository."""

from __future__ import annotations

from typing import Iterator, Optional
from urllib.parse import quote

from .config import BASE_URL
from .http_client import iter_pages
from .models import Issue, Reaction, Repository
from .rate_limit import RateLimitPolicy


def repo_api_url(repo: Repository) -> str:
    return f"{BASE_URL}/repos/{quote(repo.owner, safe='')}/{quote(repo.name, safe='')}"


def issues_url(repo: Repository) -> str:
    return f"{repo_api_url(repo)}/issues"


def reactions_url(repo: Repository, issue_number: int) -> str:
    return f"{repo_api_url(repo)}/issues/{int(issue_number)}/reactions"


def iter_issues(repo: Repository, policy: Optional[RateLimitPolicy] = None) -> Iterator[Issue]:
    """Issues (pull requests included, as the endpoint returns them) in the API's native order."""
    for payload in iter_pages(issues_url(repo), policy=policy):
        yield Issue.from_api(payload)


def iter_reactions(repo: Repository,
                   issue_number: int,
                   policy: Optional[RateLimitPolicy] = None) -> Iterator[Reaction]:
    for payload in iter_pages(reactions_url(repo, issue_number), policy=policy):
        yield Reaction.from_api(payload)


__all__ = [
    "repo_api_url",
    "issues_url",
    "reactions_url",
    "iter_issues",
    "iter_reactions",
]

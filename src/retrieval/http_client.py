"""HTTP helpers with retry/backoff logic and lazy pagination for the GitHub REST API."""

from __future__ import annotations

import os
import time
from typing import Any, Dict, Iterator, Optional

import requests

from .config import (
    BACKOFF_BASE_SEC,
    GITHUB_TOKEN,
    MAX_RETRIES,
    PER_PAGE,
    REQUEST_TIMEOUT,
    USER_AGENT,
)
from .rate_limit import RateLimitEvent, RateLimitKind, RateLimitPolicy, classify_rate_limit

SESSION = requests.Session()
SESSION.headers.update(
    {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
    }
)

DEFAULT_POLICY = RateLimitPolicy()

_auth_configured = False


class FetchError(RuntimeError):
    """A page request failed and will not be retried further."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class PrimaryRateLimitError(FetchError):
    pass


class SecondaryRateLimitError(FetchError):
    pass


def sleep_with_jitter(base: float) -> None:
    """Pause execution with +/- 25% jitter to avoid synchronized retries."""
    jitter = base * 0.25 * (0.5 - (os.urandom(1)[0] / 255.0))
    time.sleep(max(0.0, base + jitter))


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when GitHub returns an error."""
    try:
        body = resp.json()
    except ValueError:
        body = {"text": (resp.text or "")[:300]}
    if not isinstance(body, dict):
        body = {"text": str(body)[:300]}
    msg = body.get("message") or body.get("error") or body.get("text")
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {msg}")


def set_auth_header(token: Optional[str] = None) -> None:
    """Set or clear the SESSION bearer credential."""
    global _auth_configured
    if token:
        SESSION.headers["Authorization"] = f"Bearer {token}"
    else:
        SESSION.headers.pop("Authorization", None)
        print("[warn] GITHUB_TOKEN not set; using unauthenticated requests (low rate limit)")
    _auth_configured = True


def request_with_backoff(method: str,
                         url: str,
                         *,
                         params: Optional[Dict[str, Any]] = None,
                         policy: Optional[RateLimitPolicy] = None,
                         **kwargs) -> requests.Response:
    """Perform a REST call, retrying transient failures and consulting the rate-limit policy.

    Returns only 2xx responses; everything else ends in FetchError.
    """
    if not _auth_configured:
        set_auth_header(GITHUB_TOKEN)

    policy = policy or DEFAULT_POLICY
    timeout = kwargs.pop("timeout", REQUEST_TIMEOUT)
    transient_attempt = 0
    rate_limit_attempt = 0

    while True:
        try:
            resp = SESSION.request(method, url, params=params, timeout=timeout, **kwargs)
        except requests.RequestException as exc:
            transient_attempt += 1
            if transient_attempt >= MAX_RETRIES:
                raise FetchError(f"{method} {url} failed after {transient_attempt} attempts: {exc}",
                                 url=url) from exc
            delay = BACKOFF_BASE_SEC * (2 ** (transient_attempt - 1))
            print(f"[retry {transient_attempt}/{MAX_RETRIES}] {exc} -> sleep {delay:.1f}s")
            sleep_with_jitter(delay)
            continue

        if 200 <= resp.status_code < 300:
            return resp

        throttled = classify_rate_limit(resp)
        if throttled is not None:
            kind, retry_after = throttled
            rate_limit_attempt += 1
            decision = policy.decide(
                RateLimitEvent(kind=kind, attempt=rate_limit_attempt, retry_after=retry_after,
                               method=method, url=url)
            )
            if decision.retry:
                time.sleep(decision.delay)
                continue
            error_cls = PrimaryRateLimitError if kind is RateLimitKind.PRIMARY else SecondaryRateLimitError
            raise error_cls(
                f"{kind.value} rate limit for {method} {url} after {rate_limit_attempt} attempt(s)",
                url=url,
                status=resp.status_code,
            )

        if resp.status_code >= 500:
            transient_attempt += 1
            if transient_attempt < MAX_RETRIES:
                delay = BACKOFF_BASE_SEC * (2 ** (transient_attempt - 1))
                print(f"[retry {transient_attempt}/{MAX_RETRIES}] HTTP {resp.status_code} -> sleep {delay:.1f}s")
                sleep_with_jitter(delay)
                continue

        log_http_error(resp, url)
        raise FetchError(f"HTTP {resp.status_code} for {method} {url}", url=url, status=resp.status_code)


def iter_pages(url: str,
               params: Optional[Dict[str, Any]] = None,
               *,
               per_page: Optional[int] = None,
               policy: Optional[RateLimitPolicy] = None) -> Iterator[Dict[str, Any]]:
    """Yield items from successive pages until a short or empty page.

    Each call starts from page 1 and nothing is cached, so iterating again
    re-issues every request. The next page is requested only once the
    consumer has taken every item of the current one.
    """
    size = per_page or PER_PAGE
    page = 1
    while True:
        query = dict(params or {})
        query.update({"per_page": size, "page": page})
        resp = request_with_backoff("GET", url, params=query, policy=policy)
        try:
            batch = resp.json()
        except ValueError as exc:
            raise FetchError(f"Invalid JSON from {url} (page {page})", url=url,
                             status=resp.status_code) from exc
        if not isinstance(batch, list):
            raise FetchError(f"Expected a list from {url} (page {page})", url=url,
                             status=resp.status_code)
        if not batch:
            return

        yield from batch

        if len(batch) < size:
            return
        page += 1


__all__ = [
    "SESSION",
    "DEFAULT_POLICY",
    "FetchError",
    "PrimaryRateLimitError",
    "SecondaryRateLimitError",
    "sleep_with_jitter",
    "log_http_error",
    "set_auth_header",
    "request_with_backoff",
    "iter_pages",
]

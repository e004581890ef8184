"""Rate-limit classification and the retry policy consulted on every GitHub request."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import requests

from .config import MAX_WAIT_ON_RATE_LIMIT, RATE_LIMIT_MAX_ATTEMPTS

DEFAULT_RETRY_AFTER_SEC = 60
SECONDARY_MARKERS = ("secondary rate limit", "abuse")


class RateLimitKind(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class RateLimitEvent:
    """A single throttled response; `attempt` counts rate-limited attempts from 1."""

    kind: RateLimitKind
    attempt: int
    retry_after: float
    method: str
    url: str


@dataclass(frozen=True)
class RateLimitDecision:
    retry: bool
    delay: float = 0.0


class RateLimitPolicy:
    """Retry primary rate limits a bounded number of times; never retry secondary ones.

    The only state is what the caller passes in the event, so one policy
    instance can be shared across every request of a run.
    """

    def __init__(self, max_attempts: int = RATE_LIMIT_MAX_ATTEMPTS,
                 max_wait: float = MAX_WAIT_ON_RATE_LIMIT) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.max_wait = max_wait

    def decide(self, event: RateLimitEvent) -> RateLimitDecision:
        print(f"[rate-limit] {event.kind.value} rate limit hit for request {event.method} {event.url}")
        if event.kind is RateLimitKind.SECONDARY:
            return RateLimitDecision(retry=False)

        if event.attempt < self.max_attempts:
            delay = min(max(0.0, float(event.retry_after)), float(self.max_wait))
            print(f"[rate-limit] retrying after {delay:.0f}s (attempt {event.attempt}/{self.max_attempts})")
            return RateLimitDecision(retry=True, delay=delay)

        print(f"[rate-limit] giving up after {event.attempt} attempt(s)")
        return RateLimitDecision(retry=False)


def _response_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").lower()
    if isinstance(body, dict):
        return str(body.get("message") or "").lower()
    return ""


def _seconds_until(reset: str, now: Optional[float] = None) -> float:
    now = time.time() if now is None else now
    return max(0.0, int(reset) - now)


def classify_rate_limit(resp: requests.Response,
                        now: Optional[float] = None) -> Optional[Tuple[RateLimitKind, float]]:
    """Return (kind, suggested delay in seconds) for a throttled response, else None."""
    if resp.status_code not in (403, 429):
        return None

    headers = resp.headers or {}
    remaining = headers.get("X-RateLimit-Remaining")
    reset = headers.get("X-RateLimit-Reset")
    retry_after = headers.get("Retry-After")
    has_retry_after = bool(retry_after) and str(retry_after).isdigit()
    message = _response_message(resp)

    if any(marker in message for marker in SECONDARY_MARKERS):
        delay = int(retry_after) if has_retry_after else DEFAULT_RETRY_AFTER_SEC
        return RateLimitKind.SECONDARY, float(delay)

    if remaining == "0":
        if has_retry_after:
            delay = float(retry_after)
        elif reset and str(reset).isdigit():
            delay = _seconds_until(reset, now)
        else:
            delay = float(DEFAULT_RETRY_AFTER_SEC)
        return RateLimitKind.PRIMARY, delay

    if has_retry_after:
        return RateLimitKind.SECONDARY, float(retry_after)

    return None


__all__ = [
    "RateLimitKind",
    "RateLimitEvent",
    "RateLimitDecision",
    "RateLimitPolicy",
    "classify_rate_limit",
]

"""Immutable records passed between the retrieval and aggregation stages."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, Optional


def parse_github_timestamp(raw: Optional[str]) -> Optional[dt.datetime]:
    """Parse GitHub's ISO-8601 timestamps into aware UTC datetimes; None when unparseable."""
    if not raw or not isinstance(raw, str):
        return None
    try:
        value = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


@dataclass(frozen=True, order=True)
class Repository:
    """A GitHub repository named by the registry."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"

    @classmethod
    def from_full_name(cls, full_name: str) -> "Repository":
        owner, name = full_name.strip().strip("/").split("/", 1)
        return cls(owner=owner, name=name)


@dataclass(frozen=True)
class Issue:
    number: int
    url: str
    title: str
    total_reaction_count: int

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Issue":
        reactions = payload.get("reactions") or {}
        return cls(
            number=int(payload["number"]),
            url=payload.get("html_url") or payload.get("url") or "",
            title=payload.get("title") or "",
            total_reaction_count=int(reactions.get("total_count") or 0),
        )


@dataclass(frozen=True)
class Reaction:
    created_at: Optional[dt.datetime]

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Reaction":
        return cls(created_at=parse_github_timestamp(payload.get("created_at")))


@dataclass(frozen=True)
class AggregatedRecord:
    """Per-issue output unit; recent_count never exceeds total_count."""

    total_count: int
    recent_count: int
    url: str
    title: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_count": self.total_count,
            "recent_count": self.recent_count,
            "url": self.url,
            "title": self.title,
        }


__all__ = [
    "parse_github_timestamp",
    "Repository",
    "Issue",
    "Reaction",
    "AggregatedRecord",
]

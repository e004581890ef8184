"""Per-issue reaction aggregation over a recency window."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Iterable, Optional

from src.retrieval.models import AggregatedRecord, Issue, Reaction

from .config import AggregationConfig


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class ReactionAggregator:
    """Turns a qualifying issue and its reactions into one AggregatedRecord."""

    def __init__(self, config: AggregationConfig,
                 clock: Callable[[], dt.datetime] = utc_now) -> None:
        self.config = config
        self.clock = clock

    def qualifies(self, issue: Issue) -> bool:
        return issue.total_reaction_count >= self.config.min_reaction_count

    def cutoff(self, now: Optional[dt.datetime] = None) -> dt.datetime:
        """Exact instant `recent_reaction_days` before `now`; not rounded to a day."""
        now = now or self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=dt.timezone.utc)
        return now - dt.timedelta(days=self.config.recent_reaction_days)

    def aggregate(self, issue: Issue, reactions: Iterable[Reaction],
                  now: Optional[dt.datetime] = None) -> AggregatedRecord:
        """Consume every reaction and count those created strictly after the cutoff.

        Reactions without a parseable timestamp count toward neither side of
        the window. The recent count is capped at the issue's total, which can
        lag behind the reaction listing when reactions arrive mid-run.
        """
        if not self.qualifies(issue):
            raise ValueError(
                f"{issue.url} has {issue.total_reaction_count} reactions, "
                f"below the threshold of {self.config.min_reaction_count}"
            )

        cutoff = self.cutoff(now)
        recent = 0
        for reaction in reactions:
            if reaction.created_at is not None and reaction.created_at > cutoff:
                recent += 1

        total = issue.total_reaction_count
        return AggregatedRecord(
            total_count=total,
            recent_count=min(recent, total),
            url=issue.url,
            title=issue.title,
        )


__all__ = ["utc_now", "ReactionAggregator"]

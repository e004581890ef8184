"""Entry points for running the reaction survey: registry -> issues -> reactions -> outputs."""

from __future__ import annotations

import datetime as dt
import sys
from typing import Iterable, List, Optional

from src.output.writers import write_outputs
from src.retrieval.collectors import iter_issues, iter_reactions
from src.retrieval.http_client import FetchError
from src.retrieval.models import Repository
from src.retrieval.rate_limit import RateLimitPolicy
from src.retrieval.registry import RegistryError, collect_repositories, load_registry

from .aggregator import ReactionAggregator
from .collector import ResultCollector
from .config import AggregationConfig, PipelineSettings, parse_args, resolve_settings


def process_repo(repo: Repository,
                 aggregator: ReactionAggregator,
                 collector: ResultCollector,
                 *,
                 now: Optional[dt.datetime] = None,
                 policy: Optional[RateLimitPolicy] = None) -> int:
    """Aggregate every qualifying issue of `repo` into `collector`; returns records added.

    Stops as soon as the collector is full, without requesting further pages.
    """
    added = 0
    for issue in iter_issues(repo, policy=policy):
        if not aggregator.qualifies(issue):
            continue
        record = aggregator.aggregate(issue, iter_reactions(repo, issue.number, policy=policy), now=now)
        # progress marker, one line per aggregated issue
        print(record.url)
        collector.add(record)
        added += 1
        if collector.is_full:
            break
    return added


def collect_records(repositories: Iterable[Repository],
                    config: AggregationConfig,
                    collector: Optional[ResultCollector] = None,
                    *,
                    on_fetch_error: str = "abort",
                    aggregator: Optional[ReactionAggregator] = None,
                    policy: Optional[RateLimitPolicy] = None) -> ResultCollector:
    """Single forward pass over repositories in the given order.

    With on_fetch_error="abort" the first FetchError propagates; with "skip"
    the failing repository is reported and traversal moves on, keeping any
    records it already produced.
    """
    collector = collector if collector is not None else ResultCollector()
    aggregator = aggregator or ReactionAggregator(config)
    now = aggregator.clock()

    for repo in repositories:
        if collector.is_full:
            break
        print(f"\n=== {repo.full_name} ===")
        try:
            process_repo(repo, aggregator, collector, now=now, policy=policy)
        except FetchError as exc:
            if on_fetch_error != "skip":
                raise
            print(f"[skip] {repo.full_name}: {exc}")
    return collector


def resolve_repositories(settings: PipelineSettings) -> List[Repository]:
    """Explicit owner/repo overrides win over the registry."""
    if settings.repos:
        return sorted({Repository.from_full_name(name) for name in settings.repos}, key=lambda r: r.url)
    entries = load_registry(settings.registry)
    return collect_repositories(entries)


def run(settings: PipelineSettings) -> ResultCollector:
    repositories = resolve_repositories(settings)
    print(f"Processing {len(repositories)} repos...")
    collector = collect_records(
        repositories,
        settings.aggregation,
        ResultCollector(settings.max_records),
        on_fetch_error=settings.on_fetch_error,
    )
    written = write_outputs(collector.records, settings.output_dir, settings.formats)
    for fmt, path in written.items():
        print(f"  wrote {fmt} -> {path}")
    return collector


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the process exit status."""
    settings = resolve_settings(parse_args(argv))
    try:
        collector = run(settings)
    except (FetchError, RegistryError) as exc:
        print(f"[error] {exc}")
        return 1
    print(f"\nCollected {len(collector)} issues.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

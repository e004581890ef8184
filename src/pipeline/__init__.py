"""Reaction survey pipeline: aggregation, collection and the CLI runner."""

from .runner import collect_records, main, process_repo

__all__ = ["collect_records", "main", "process_repo"]

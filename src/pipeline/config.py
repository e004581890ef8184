"""Configuration for the reaction survey pipeline: aggregation thresholds and CLI settings."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from src.retrieval.config import REGISTRY_URL

MIN_REACTION_COUNT = int(os.getenv("MIN_REACTION_COUNT", "10"))
RECENT_REACTION_DAYS = int(os.getenv("RECENT_REACTION_DAYS", "90"))
MAX_RECORDS = int(os.getenv("MAX_RECORDS", "0"))  # 0 = no cap
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "./output")
REGISTRY_SOURCE = os.getenv("REGISTRY_SOURCE", REGISTRY_URL)

OUTPUT_FORMATS = ("json", "csv", "html")
DEFAULT_FORMATS = ("json",)
FETCH_ERROR_MODES = ("abort", "skip")


@dataclass(frozen=True)
class AggregationConfig:
    """Threshold and recency window handed to the aggregator."""

    min_reaction_count: int = MIN_REACTION_COUNT
    recent_reaction_days: int = RECENT_REACTION_DAYS

    def __post_init__(self) -> None:
        if self.min_reaction_count < 0:
            raise ValueError("min_reaction_count must be non-negative")
        if self.recent_reaction_days < 0:
            raise ValueError("recent_reaction_days must be non-negative")


@dataclass(frozen=True)
class PipelineSettings:
    """Resolved runtime settings for one survey run."""

    registry: str
    output_dir: Path
    aggregation: AggregationConfig
    max_records: Optional[int]
    formats: Tuple[str, ...]
    on_fetch_error: str
    repos: Tuple[str, ...]


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the pipeline entry point."""

    parser = argparse.ArgumentParser(
        description="Rank issues of web-platform spec repositories by reaction count.",
    )
    parser.add_argument("repos", nargs="*", metavar="OWNER/REPO",
                        help="scan these repositories instead of the registry")
    parser.add_argument("--registry", default=REGISTRY_SOURCE,
                        help="registry JSON path or URL (default: browser-specs index)")
    parser.add_argument("--output-dir", default=OUTPUT_DIR)
    parser.add_argument("--min-reactions", type=int, default=MIN_REACTION_COUNT)
    parser.add_argument("--recent-days", type=int, default=RECENT_REACTION_DAYS)
    parser.add_argument("--max-records", type=int, default=MAX_RECORDS,
                        help="stop after this many records (0 = no cap)")
    parser.add_argument("--format", dest="formats", action="append", choices=OUTPUT_FORMATS,
                        help="output format, repeatable (default: json)")
    parser.add_argument("--on-fetch-error", choices=FETCH_ERROR_MODES, default="abort",
                        help="abort the run or skip the failing repository")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.min_reactions < 0:
        parser.error("--min-reactions must be non-negative")
    if args.recent_days < 0:
        parser.error("--recent-days must be non-negative")
    return args


def is_full_name(value: str) -> bool:
    """True for `owner/name`: exactly two non-empty path segments."""
    parts = value.strip().split("/")
    return len(parts) == 2 and all(parts)


def resolve_settings(args: Optional[argparse.Namespace] = None) -> PipelineSettings:
    """Return immutable settings from parsed arguments."""

    args = args or parse_args([])
    max_records = int(args.max_records) if args.max_records else 0
    formats = tuple(dict.fromkeys(args.formats)) if args.formats else DEFAULT_FORMATS
    return PipelineSettings(
        registry=str(args.registry),
        output_dir=Path(args.output_dir),
        aggregation=AggregationConfig(
            min_reaction_count=int(args.min_reactions),
            recent_reaction_days=int(args.recent_days),
        ),
        max_records=max_records if max_records > 0 else None,
        formats=formats,
        on_fetch_error=args.on_fetch_error,
        repos=tuple(r.strip() for r in args.repos if is_full_name(r)),
    )


__all__ = [
    "MIN_REACTION_COUNT",
    "RECENT_REACTION_DAYS",
    "MAX_RECORDS",
    "OUTPUT_DIR",
    "REGISTRY_SOURCE",
    "OUTPUT_FORMATS",
    "DEFAULT_FORMATS",
    "FETCH_ERROR_MODES",
    "AggregationConfig",
    "PipelineSettings",
    "build_arg_parser",
    "parse_args",
    "is_full_name",
    "resolve_settings",
]

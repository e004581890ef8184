"""Compatibility wrapper around the reaction survey runner."""

from __future__ import annotations
import sys
from typing import List, Optional
from src.pipeline.runner import main as run_pipeline


def main(argv: Optional[List[str]] = None) -> int:
    """Delegate to the pipeline runner."""
    return run_pipeline(argv)


if __name__ == "__main__":
    sys.exit(main())

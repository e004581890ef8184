"""Ordered, optionally capped accumulation of aggregated records."""

from __future__ import annotations

from typing import Iterator, List, Optional

from src.retrieval.models import AggregatedRecord


class CollectorFullError(RuntimeError):
    pass


class ResultCollector:
    """Keeps records in discovery order; ranking is left to the output stage."""

    def __init__(self, max_records: Optional[int] = None) -> None:
        if max_records is not None and max_records < 1:
            raise ValueError("max_records must be positive or None")
        self.max_records = max_records
        self._records: List[AggregatedRecord] = []

    @property
    def is_full(self) -> bool:
        return self.max_records is not None and len(self._records) >= self.max_records

    @property
    def records(self) -> List[AggregatedRecord]:
        return list(self._records)

    def add(self, record: AggregatedRecord) -> None:
        if self.is_full:
            raise CollectorFullError(f"collector is capped at {self.max_records} records")
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AggregatedRecord]:
        return iter(self._records)


__all__ = ["CollectorFullError", "ResultCollector"]

"""Pending pairings keyed by group name.

Holds only groups whose infra/workload pairing has not completed yet, so
its size is bounded by the number of units currently starting up.
"""

from __future__ import annotations

from collections.abc import Iterator

from logpilot.types import PartialRecord


class CorrelationTable:
    def __init__(self) -> None:
        self._pending: dict[str, PartialRecord] = {}

    def get(self, group: str) -> PartialRecord | None:
        return self._pending.get(group)

    def put(self, group: str, record: PartialRecord) -> None:
        """Insert or replace the record for ``group`` (last write wins)."""
        self._pending[group] = record

    def discard(self, group: str) -> PartialRecord | None:
        return self._pending.pop(group, None)

    def __contains__(self, group: object) -> bool:
        return group in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def __iter__(self) -> Iterator[str]:
        return iter(self._pending)

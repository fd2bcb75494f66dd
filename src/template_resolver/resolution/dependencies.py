from __future__ import annotations

from ..types import DependencyRecord


class DependencySet:
    """Dependency records keyed by runtime name; the first record added wins."""

    def __init__(self) -> None:
        self._records: dict[str, DependencyRecord] = {}

    def add(self, record: DependencyRecord) -> bool:
        if record.runtime_name in self._records:
            return False
        self._records[record.runtime_name] = record
        return True

    def __contains__(self, runtime_name: object) -> bool:
        if isinstance(runtime_name, DependencyRecord):
            runtime_name = runtime_name.runtime_name
        return runtime_name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def finalize(self) -> list[DependencyRecord]:
        return sorted(self._records.values(), key=lambda r: r.runtime_name)

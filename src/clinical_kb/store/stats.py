"""Incrementally maintained statistics over stored entries."""

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime

from clinical_kb.errors import StatisticsError
from clinical_kb.models.entry import EntryType, KnowledgeBaseEntry
from clinical_kb.models.stats import KnowledgeBaseStats, SyncStatus

_TYPE_FIELDS: dict[EntryType, str] = {
    EntryType.ARTICLE: "total_articles",
    EntryType.CASE: "total_cases",
    EntryType.IMAGE: "total_images",
}


class StatisticsAggregator:
    """Counts by type, system, modality and pathology.

    A multi-modality entry contributes once to every listed modality. Counters
    that reach zero are dropped from the breakdowns, so an incrementally
    maintained aggregate compares equal to a fresh recount.
    """

    def __init__(self) -> None:
        """Start with all counters at zero."""
        self._by_type: dict[EntryType, int] = dict.fromkeys(EntryType, 0)
        self._system: dict[str, int] = {}
        self._modality: dict[str, int] = {}
        self._pathology: dict[str, int] = {}
        self.last_updated = datetime.now(UTC)
        self.sync_status = SyncStatus.IDLE

    @classmethod
    def recount(cls, entries: Iterable[KnowledgeBaseEntry]) -> "StatisticsAggregator":
        """Build a fresh aggregate from scratch."""
        agg = cls()
        for entry in entries:
            agg.add(entry)
        return agg

    def add(self, entry: KnowledgeBaseEntry) -> None:
        """Count an entry's contribution."""
        self._apply(entry, 1)

    def remove(self, entry: KnowledgeBaseEntry) -> None:
        """Withdraw an entry's contribution."""
        self._apply(entry, -1)

    def _apply(self, entry: KnowledgeBaseEntry, delta: int) -> None:
        meta = entry.metadata
        changes = [
            (self._system, Counter([meta.system] if meta.system else [])),
            (self._modality, Counter(meta.modality)),
            (self._pathology, Counter(meta.pathology)),
        ]
        # Check every counter before touching any, so a failed removal changes nothing
        if self._by_type[entry.type] + delta < 0:
            raise StatisticsError(f"Count for type {entry.type.value} would go negative")
        for counter, keys in changes:
            for key, times in keys.items():
                if counter.get(key, 0) + delta * times < 0:
                    raise StatisticsError(f"Count for {key!r} would go negative")

        self._by_type[entry.type] += delta
        for counter, keys in changes:
            for key, times in keys.items():
                _bump(counter, key, delta * times)
        self.touch()

    def touch(self) -> None:
        """Refresh the last-updated timestamp."""
        self.last_updated = datetime.now(UTC)

    def reset(self) -> None:
        """Zero every counter."""
        self._by_type = dict.fromkeys(EntryType, 0)
        self._system.clear()
        self._modality.clear()
        self._pathology.clear()
        self.sync_status = SyncStatus.IDLE
        self.touch()

    def snapshot(self) -> KnowledgeBaseStats:
        """Immutable copy of the current counters."""
        values: dict[str, object] = {
            field: self._by_type[entry_type] for entry_type, field in _TYPE_FIELDS.items()
        }
        return KnowledgeBaseStats(
            **values,
            system_breakdown=dict(self._system),
            modality_breakdown=dict(self._modality),
            pathology_breakdown=dict(self._pathology),
            last_updated=self.last_updated,
            sync_status=self.sync_status,
        )


def _bump(counter: dict[str, int], key: str, delta: int) -> None:
    value = counter.get(key, 0) + delta
    if value == 0:
        counter.pop(key, None)
    else:
        counter[key] = value

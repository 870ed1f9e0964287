"""In-memory knowledge store owning entries, the inverted index and statistics."""

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from clinical_kb.errors import ImportRecordError, NotFoundError, ValidationError
from clinical_kb.models.entry import KnowledgeBaseEntry
from clinical_kb.models.imports import ImportResult
from clinical_kb.models.search import SearchQuery, SearchResult
from clinical_kb.models.stats import KnowledgeBaseExport, KnowledgeBaseStats, SyncStatus
from clinical_kb.search.engine import run_search
from clinical_kb.search.semantic import EmbeddingProvider, embed_query
from clinical_kb.search.similarity import find_related
from clinical_kb.store.index import InvertedIndex
from clinical_kb.store.locking import ReadWriteLock
from clinical_kb.store.stats import StatisticsAggregator

logger = logging.getLogger(__name__)

# Fields an update can never change
_PRESERVED_FIELDS = {"id", "type"}


def coerce_entry(data: KnowledgeBaseEntry | Mapping[str, Any]) -> KnowledgeBaseEntry:
    """Validate a mapping (or copy a model) into a KnowledgeBaseEntry."""
    if isinstance(data, KnowledgeBaseEntry):
        entry = data.model_copy(deep=True)
    else:
        try:
            entry = KnowledgeBaseEntry.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid entry: {e}") from e
    check_entry(entry)
    return entry


def check_entry(entry: KnowledgeBaseEntry) -> None:
    """Raise ValidationError unless id, type and title are present."""
    if not entry.id or not entry.id.strip():
        raise ValidationError("Entry id is required")
    if not entry.type:
        raise ValidationError(f"Entry {entry.id} has no type")
    if not entry.title or not entry.title.strip():
        raise ValidationError(f"Entry {entry.id} has an empty title")


def _record_id(raw: object) -> str:
    if isinstance(raw, Mapping):
        return str(raw.get("id") or "<unknown>")
    if isinstance(raw, KnowledgeBaseEntry):
        return raw.id or "<unknown>"
    return "<unknown>"


class KnowledgeStore:
    """Single owner of the entry map, inverted index and statistics.

    Every mutation updates all three inside one writer-locked section, so
    readers never observe an entry that is stored but not indexed (or vice
    versa). Entries handed out are deep copies.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider | None = None,
        semantic_threshold: float = 0.75,
    ):
        """Initialize an empty store with an optional query embedder."""
        self._entries: dict[str, KnowledgeBaseEntry] = {}
        self._index = InvertedIndex()
        self._stats = StatisticsAggregator()
        self._lock = ReadWriteLock()
        self._embedder = embedder
        self._semantic_threshold = semantic_threshold

    @property
    def has_embedding_engine(self) -> bool:
        """Whether semantic search can use embeddings instead of falling back."""
        return self._embedder is not None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def put(self, entry: KnowledgeBaseEntry | Mapping[str, Any]) -> KnowledgeBaseEntry:
        """Insert or overwrite an entry by id."""
        stored = coerce_entry(entry)
        with self._lock.write():
            replaced = self._put_locked(stored)
        if replaced:
            logger.info("Replaced entry %s: %s", stored.id, stored.title)
        else:
            logger.info("Added entry %s: %s (%s)", stored.id, stored.title, stored.type.value)
        return stored.model_copy(deep=True)

    def update(self, entry_id: str, updates: Mapping[str, Any]) -> KnowledgeBaseEntry:
        """Merge partial fields into an existing entry.

        Top-level fields replace; ``metadata`` keys merge over the existing
        metadata. ``id``, ``type`` and the view counter are preserved and
        ``updated_at`` is refreshed.
        """
        with self._lock.write():
            existing = self._entries.get(entry_id)
            if existing is None:
                raise NotFoundError(entry_id)
            updated = _merge(existing, updates)
            self._put_locked(updated)
        logger.info("Updated entry %s", entry_id)
        return updated.model_copy(deep=True)

    def upsert_many(self, entries: Iterable[KnowledgeBaseEntry]) -> tuple[int, int]:
        """Put new entries and merge existing ones as one unit.

        Everything is validated before anything is written. Returns
        ``(created, updated)``.
        """
        batch = [coerce_entry(e) for e in entries]
        created = updated = 0
        with self._lock.write():
            for entry in batch:
                existing = self._entries.get(entry.id)
                if existing is None:
                    self._put_locked(entry)
                    created += 1
                else:
                    merged = _merge(existing, entry.model_dump(exclude_unset=True))
                    self._put_locked(merged)
                    updated += 1
        logger.debug("Upserted %d new and %d existing entries", created, updated)
        return created, updated

    def delete(self, entry_id: str) -> None:
        """Remove an entry along with its postings and statistics."""
        with self._lock.write():
            entry = self._entries.pop(entry_id, None)
            if entry is None:
                raise NotFoundError(entry_id)
            self._index.remove(entry_id)
            self._stats.remove(entry)
        logger.info("Deleted entry %s", entry_id)

    def clear_all(self) -> None:
        """Wipe entries, index and statistics."""
        with self._lock.write():
            self._clear_locked()
        logger.info("Knowledge base cleared")

    def set_sync_status(self, status: SyncStatus) -> None:
        """Record the state of the latest import."""
        with self._lock.write():
            self._stats.sync_status = status

    def _put_locked(self, entry: KnowledgeBaseEntry) -> bool:
        previous = self._entries.get(entry.id)
        if previous is not None:
            self._stats.remove(previous)
        self._entries[entry.id] = entry
        self._index.add(entry)
        self._stats.add(entry)
        return previous is not None

    def _clear_locked(self) -> None:
        self._entries.clear()
        self._index.clear()
        self._stats.reset()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entry_id: str) -> KnowledgeBaseEntry | None:
        """Return an entry and count the view, or None if absent."""
        with self._lock.write():
            entry = self._entries.get(entry_id)
            if entry is None:
                return None
            entry.metadata.views += 1
            return entry.model_copy(deep=True)

    def peek(self, entry_id: str) -> KnowledgeBaseEntry | None:
        """Return an entry without counting a view."""
        with self._lock.read():
            entry = self._entries.get(entry_id)
            return entry.model_copy(deep=True) if entry is not None else None

    def list_entries(self) -> list[KnowledgeBaseEntry]:
        """All entries ordered by id."""
        with self._lock.read():
            return [self._entries[eid].model_copy(deep=True) for eid in sorted(self._entries)]

    def search(self, query: SearchQuery | None = None, **params: Any) -> SearchResult:
        """Keyword or semantic search with filters and pagination.

        Accepts a SearchQuery or its fields as keyword arguments. The query
        is embedded before the lock is taken so writers never wait on the
        embedding engine.
        """
        if query is None:
            query = SearchQuery(**params)
        query_vec = embed_query(self._embedder, query.text) if query.semantic else None
        with self._lock.read():
            result = run_search(
                self._entries,
                self._index,
                query,
                query_vec=query_vec,
                semantic_threshold=self._semantic_threshold,
            )
            result.entries = [e.model_copy(deep=True) for e in result.entries]
        logger.debug(
            "Search %r matched %d (%s, %.1fms)",
            query.text,
            result.total_count,
            result.match_source,
            result.search_time_ms,
        )
        return result

    def related_entries(self, entry_id: str, limit: int = 5) -> list[KnowledgeBaseEntry]:
        """Explicitly linked entries, topped up by metadata similarity."""
        with self._lock.read():
            entry = self._entries.get(entry_id)
            if entry is None:
                return []
            related = find_related(self._entries, entry, limit)
            return [e.model_copy(deep=True) for e in related]

    def get_stats(self) -> KnowledgeBaseStats:
        """Current aggregate statistics."""
        with self._lock.read():
            return self._stats.snapshot()

    def recount_stats(self) -> KnowledgeBaseStats:
        """Statistics recomputed from scratch over the stored entries."""
        with self._lock.read():
            return StatisticsAggregator.recount(self._entries.values()).snapshot()

    def index_terms(self) -> list[str]:
        """Indexed terms, sorted."""
        with self._lock.read():
            return sorted(self._index.terms())

    def postings(self, term: str) -> set[str]:
        """Copy of the posting set for a term."""
        with self._lock.read():
            return self._index.lookup(term)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        with self._lock.read():
            return entry_id in self._entries

    # ------------------------------------------------------------------
    # Export / restore
    # ------------------------------------------------------------------

    def export_all(self) -> KnowledgeBaseExport:
        """Snapshot of every entry plus statistics."""
        with self._lock.read():
            return KnowledgeBaseExport(
                entries=[self._entries[eid].model_copy(deep=True) for eid in sorted(self._entries)],
                stats=self._stats.snapshot(),
                export_date=datetime.now(UTC),
            )

    def import_from_export(
        self,
        data: KnowledgeBaseExport | Mapping[str, Any],
        replace: bool = True,
    ) -> ImportResult:
        """Restore entries from an export snapshot.

        With ``replace`` the store is cleared first and the exported
        ``last_updated``/``sync_status`` are restored, so importing an export
        reproduces the exported state. Bad entries are collected as errors.
        """
        payload = data.model_dump() if isinstance(data, BaseModel) else data
        raw_entries = payload.get("entries")
        if not isinstance(raw_entries, list):
            raise ValidationError("Invalid export format: 'entries' must be a list")

        exported_stats: KnowledgeBaseStats | None = None
        if payload.get("stats") is not None:
            try:
                exported_stats = KnowledgeBaseStats.model_validate(payload["stats"])
            except PydanticValidationError:
                logger.warning("Ignoring malformed stats in export", exc_info=True)

        result = ImportResult()
        with self._lock.write():
            if replace:
                self._clear_locked()
            for raw in raw_entries:
                try:
                    entry = coerce_entry(raw)
                except ValidationError as e:
                    result.errors.append(ImportRecordError(record_id=_record_id(raw), message=str(e)))
                    continue
                if self._put_locked(entry):
                    result.updated += 1
                else:
                    result.imported += 1
            if replace and exported_stats is not None:
                self._stats.last_updated = exported_stats.last_updated
                self._stats.sync_status = exported_stats.sync_status

        logger.info(
            "Imported export: %d new, %d replaced, %d errors",
            result.imported,
            result.updated,
            len(result.errors),
        )
        return result


def _merge(existing: KnowledgeBaseEntry, updates: Mapping[str, Any]) -> KnowledgeBaseEntry:
    """Apply partial updates to an entry, returning a new validated entry."""
    data = existing.model_dump()
    for key, value in updates.items():
        if key in _PRESERVED_FIELDS:
            continue
        if key not in KnowledgeBaseEntry.model_fields:
            raise ValidationError(f"Unknown entry field: {key}")
        if key == "metadata":
            if isinstance(value, BaseModel):
                meta_updates = value.model_dump(exclude_unset=True)
            else:
                meta_updates = dict(value or {})
            meta_updates.pop("views", None)
            data["metadata"].update(meta_updates)
        else:
            data[key] = value
    data["metadata"]["updated_at"] = datetime.now(UTC)
    try:
        merged = KnowledgeBaseEntry.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid update for {existing.id}: {e}") from e
    check_entry(merged)
    return merged

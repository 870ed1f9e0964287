"""Keyword search over the inverted index with metadata filters."""

import logging
from collections.abc import Iterable, Mapping
from functools import cmp_to_key

from clinical_kb.models.entry import KnowledgeBaseEntry
from clinical_kb.models.search import SearchFilters
from clinical_kb.store.index import InvertedIndex, tokenize

logger = logging.getLogger(__name__)


def matches_filters(entry: KnowledgeBaseEntry, filters: SearchFilters | None) -> bool:
    """True when the entry satisfies every filter field that is set.

    ``modality`` matches if the entry lists that modality; ``pathology``
    matches if any of the entry's pathologies contains the filter value.
    """
    if filters is None:
        return True
    meta = entry.metadata
    if filters.type is not None and entry.type != filters.type:
        return False
    if filters.system is not None and meta.system != filters.system:
        return False
    if filters.modality is not None and filters.modality not in meta.modality:
        return False
    if filters.pathology is not None and not any(
        filters.pathology in p for p in meta.pathology
    ):
        return False
    if filters.body_part is not None and meta.body_part != filters.body_part:
        return False
    if filters.difficulty is not None and meta.difficulty != filters.difficulty:
        return False
    if filters.source is not None and meta.source != filters.source:
        return False
    return True


def _compare(a: KnowledgeBaseEntry, b: KnowledgeBaseEntry) -> int:
    ra, rb = a.metadata.relevance_score, b.metadata.relevance_score
    if ra is not None and rb is not None and ra != rb:
        return -1 if ra > rb else 1
    if ra is None or rb is None:
        va, vb = a.metadata.views, b.metadata.views
        if va != vb:
            return -1 if va > vb else 1
    if a.id == b.id:
        return 0
    return -1 if a.id < b.id else 1


def rank_entries(entries: Iterable[KnowledgeBaseEntry]) -> list[KnowledgeBaseEntry]:
    """Order by relevance_score when both carry one, else by views; ties by id."""
    # Pre-sort by id so the pairwise comparison sees a fixed input order
    by_id = sorted(entries, key=lambda e: e.id)
    return sorted(by_id, key=cmp_to_key(_compare))


def candidate_ids(
    entries: Mapping[str, KnowledgeBaseEntry],
    index: InvertedIndex,
    text: str,
) -> set[str]:
    """Ids containing every query token. Empty query text selects everything."""
    if not text.strip():
        return set(entries)
    terms = tokenize(text)
    if not terms:
        logger.debug("Query %r has no indexable tokens", text)
        return set()
    return index.intersect(terms)


def keyword_search(
    entries: Mapping[str, KnowledgeBaseEntry],
    index: InvertedIndex,
    text: str,
    filters: SearchFilters | None = None,
) -> list[KnowledgeBaseEntry]:
    """AND-match the query, apply filters, and rank the survivors."""
    matched = [
        entries[eid]
        for eid in candidate_ids(entries, index, text)
        if eid in entries and matches_filters(entries[eid], filters)
    ]
    return rank_entries(matched)

"""Semantic search with a keyword fallback.

Embedding generation is not done here. An ``EmbeddingProvider`` may be
plugged in to vectorize queries; stored entries carry vectors supplied by
whoever produced them. Without a provider, semantic mode returns exactly the
keyword results.
"""

import logging
import math
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from clinical_kb.models.entry import KnowledgeBaseEntry
from clinical_kb.models.search import SearchFilters
from clinical_kb.search.keyword import keyword_search, matches_filters
from clinical_kb.store.index import InvertedIndex

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for query vectorizers with graceful degradation."""

    def embed(self, text: str) -> list[float] | None:
        """Return a vector for the text, or None if unavailable."""
        ...


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine of the angle between two vectors; 0.0 for mismatched or zero vectors."""
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return dot / norm


def embed_query(embedder: EmbeddingProvider | None, text: str) -> list[float] | None:
    """Vectorize a query, or None when no engine is configured or it fails."""
    if embedder is None or not text.strip():
        return None
    try:
        return embedder.embed(text)
    except Exception:
        logger.warning("Query embedding failed, using keyword results", exc_info=True)
        return None


def semantic_search(
    entries: Mapping[str, KnowledgeBaseEntry],
    index: InvertedIndex,
    text: str,
    filters: SearchFilters | None,
    query_vec: list[float] | None,
    threshold: float,
) -> tuple[list[KnowledgeBaseEntry], bool]:
    """Keyword results extended with embedding neighbours.

    Returns ``(results, used_embeddings)``. The keyword results always lead,
    so semantic mode never returns less than keyword mode. Without a query
    vector the keyword results are returned unchanged.
    """
    keyword_results = keyword_search(entries, index, text, filters)
    if query_vec is None:
        return keyword_results, False

    seen = {e.id for e in keyword_results}
    scored: list[tuple[float, KnowledgeBaseEntry]] = []
    for entry in entries.values():
        if entry.id in seen or not entry.embedding:
            continue
        if not matches_filters(entry, filters):
            continue
        score = cosine_similarity(query_vec, entry.embedding)
        if score >= threshold:
            scored.append((score, entry))

    scored.sort(key=lambda pair: (-pair[0], pair[1].id))
    return keyword_results + [entry for _score, entry in scored], True

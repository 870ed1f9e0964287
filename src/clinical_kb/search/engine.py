"""Search orchestration: mode selection, pagination and suggestions."""

import logging
import time
from collections.abc import Mapping

from clinical_kb.models.entry import KnowledgeBaseEntry
from clinical_kb.models.search import SearchQuery, SearchResult
from clinical_kb.search.keyword import keyword_search
from clinical_kb.search.semantic import semantic_search
from clinical_kb.search.suggestions import suggest_terms
from clinical_kb.store.index import InvertedIndex

logger = logging.getLogger(__name__)


def run_search(
    entries: Mapping[str, KnowledgeBaseEntry],
    index: InvertedIndex,
    query: SearchQuery,
    query_vec: list[float] | None = None,
    semantic_threshold: float = 0.75,
) -> SearchResult:
    """Execute a search against the given entries and index.

    Semantic mode uses ``query_vec``, computed by the caller outside any
    lock. Never raises for "no matches": an empty result still carries
    suggestions. The returned entries are the stored objects; callers copy them.
    """
    start = time.perf_counter()

    match_source = "keyword"
    if query.semantic:
        matches, used_embeddings = semantic_search(
            entries, index, query.text, query.filters, query_vec, semantic_threshold
        )
        if used_embeddings:
            match_source = "semantic"
        else:
            logger.debug("Semantic search degraded to keyword mode for %r", query.text)
    else:
        matches = keyword_search(entries, index, query.text, query.filters)

    page = matches[query.offset : query.offset + query.limit]
    elapsed_ms = (time.perf_counter() - start) * 1000

    return SearchResult(
        entries=page,
        total_count=len(matches),
        search_time_ms=round(elapsed_ms, 3),
        suggestions=suggest_terms(index, query.text),
        match_source=match_source,
    )

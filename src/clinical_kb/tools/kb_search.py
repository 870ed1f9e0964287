"""kb_search MCP tool — keyword/filtered search with semantic fallback."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from clinical_kb.config import get_search_limit
from clinical_kb.models.entry import Difficulty, EntrySource, EntryType
from clinical_kb.models.search import SearchFilters, SearchQuery, SearchResult
from clinical_kb.store.knowledge_store import KnowledgeStore
from clinical_kb.tools.formatters import format_entry_compact, format_result_list

logger = logging.getLogger(__name__)


def format_search_results(result: SearchResult, note: str | None = None) -> str:
    """Format a search result as compact entries plus suggestions."""
    header = f"Found {result.total_count} match(es) in {result.search_time_ms:.1f}ms"
    entries = [format_entry_compact(e) for e in result.entries]
    return format_result_list(entries, header=header, note=note, suggestions=result.suggestions)


def search_entries(
    store: KnowledgeStore,
    query: str,
    filters: SearchFilters | None = None,
    limit: int | None = None,
    offset: int = 0,
    semantic: bool = False,
) -> str:
    """Core kb_search logic, testable without MCP context."""
    search_query = SearchQuery(
        text=query,
        filters=filters if filters is not None and not filters.is_empty() else None,
        limit=limit or get_search_limit(),
        offset=offset,
        semantic=semantic,
    )
    result = store.search(search_query)

    note = None
    if semantic and result.match_source != "semantic":
        note = "Semantic search unavailable. Results are keyword-only."
    return format_search_results(result, note)


def register_kb_search(mcp: FastMCP) -> None:
    """Register the kb_search tool with the MCP server."""

    @mcp.tool()
    async def kb_search(
        query: Annotated[str, Field(description="Keywords; every word must match")] = "",
        entry_type: Annotated[
            EntryType | None, Field(description="Filter by type: article, case, image")
        ] = None,
        system: Annotated[
            str | None, Field(description="Filter by organ system (e.g. respiratory)")
        ] = None,
        modality: Annotated[
            str | None, Field(description="Filter by imaging modality (e.g. CT, MR, X-ray)")
        ] = None,
        pathology: Annotated[
            str | None, Field(description="Filter by pathology (substring match)")
        ] = None,
        body_part: Annotated[str | None, Field(description="Filter by body part")] = None,
        difficulty: Annotated[
            Difficulty | None, Field(description="Filter by difficulty level")
        ] = None,
        source: Annotated[
            EntrySource | None, Field(description="Filter by source: external, manual, generated")
        ] = None,
        limit: Annotated[
            int | None, Field(description="Maximum results to return (1-100)", ge=1, le=100)
        ] = None,
        offset: Annotated[int, Field(description="Results to skip for paging", ge=0)] = 0,
        semantic: Annotated[
            bool, Field(description="Use semantic search (falls back to keywords)")
        ] = False,
        ctx: Context | None = None,
    ) -> str:
        """Search the clinical knowledge base.

        All query words must appear in an entry's title, content, tags,
        pathology, system or body part. Results are ranked by relevance score
        or popularity. Empty queries list everything matching the filters.
        Includes up to 5 suggested alternate terms.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        filters = SearchFilters(
            type=entry_type,
            system=system,
            modality=modality,
            pathology=pathology,
            body_part=body_part,
            difficulty=difficulty,
            source=source,
        )
        store: KnowledgeStore = ctx.lifespan_context["store"]
        return search_entries(store, query, filters, limit, offset, semantic)

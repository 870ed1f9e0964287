"""kb_related MCP tool — linked and similar entries."""

from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from clinical_kb.config import get_related_limit
from clinical_kb.store.knowledge_store import KnowledgeStore
from clinical_kb.tools.formatters import format_entry_compact, format_result_list


def related_for(store: KnowledgeStore, entry_id: str, limit: int | None = None) -> str:
    """Core kb_related logic."""
    source = store.peek(entry_id)
    if source is None:
        return f"[{entry_id}] not found"
    related = store.related_entries(entry_id, limit or get_related_limit())
    return format_result_list(
        [format_entry_compact(e) for e in related],
        header=f"Related to [{source.id}] {source.title}",
    )


def register_kb_related(mcp: FastMCP) -> None:
    """Register the kb_related tool with the MCP server."""

    @mcp.tool()
    async def kb_related(
        entry_id: Annotated[str, Field(description="Entry to find related material for")],
        limit: Annotated[
            int | None, Field(description="Maximum related entries (1-20)", ge=1, le=20)
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """List entries related to a given entry.

        Explicit links come first, then entries sharing system, modality,
        pathology or body part, most similar first.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        return related_for(ctx.lifespan_context["store"], entry_id, limit)

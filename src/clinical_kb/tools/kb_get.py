"""kb_get MCP tool — full entry retrieval by ID."""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from clinical_kb.store.knowledge_store import KnowledgeStore
from clinical_kb.tools.formatters import format_entry_full, format_result_list

logger = logging.getLogger(__name__)

_MAX_IDS = 20


def get_entries(store: KnowledgeStore, ids: list[str]) -> str:
    """Core kb_get logic. Each successful read counts a view."""
    if len(ids) > _MAX_IDS:
        return f"Error: Maximum {_MAX_IDS} IDs per request (got {len(ids)})."

    formatted: list[str] = []
    for eid in ids:
        entry = store.get(eid)
        if entry is None:
            formatted.append(f"[{eid}] not found")
        else:
            formatted.append(format_entry_full(entry))
    return format_result_list(formatted)


def register_kb_get(mcp: FastMCP) -> None:
    """Register the kb_get tool with the MCP server."""

    @mcp.tool()
    async def kb_get(
        entry_id: Annotated[
            str | list[str],
            Field(description="Single entry ID or list of IDs (max 20)"),
        ],
        ctx: Context | None = None,
    ) -> str:
        """Retrieve full details for one or more knowledge base entries by ID.

        Use after kb_search to read complete content, images and links.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        ids = [entry_id] if isinstance(entry_id, str) else list(entry_id)
        return get_entries(ctx.lifespan_context["store"], ids)

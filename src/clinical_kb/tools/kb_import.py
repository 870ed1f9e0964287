"""kb_import MCP tool — import external article and case records."""

import logging
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from clinical_kb.ingest.importer import import_batch
from clinical_kb.models.imports import ImportResult
from clinical_kb.store.knowledge_store import KnowledgeStore

logger = logging.getLogger(__name__)

_MAX_BATCH = 100


def format_import_result(result: ImportResult) -> str:
    """Summary line plus one line per failed record."""
    lines = [
        f"Import: {result.imported} imported, {result.updated} updated, "
        f"{len(result.errors)} error(s)"
    ]
    lines.extend(f"  - {err}" for err in result.errors)
    return "\n".join(lines)


def import_records(store: KnowledgeStore, records: list[dict[str, Any]]) -> str:
    """Core kb_import logic, testable without MCP context."""
    if not records:
        return "Error: records list is empty."
    if len(records) > _MAX_BATCH:
        return f"Error: Maximum {_MAX_BATCH} records per batch (got {len(records)})."
    return format_import_result(import_batch(store, records))


def register_kb_import(mcp: FastMCP) -> None:
    """Register the kb_import tool with the MCP server."""

    @mcp.tool()
    async def kb_import(
        records: Annotated[
            list[dict[str, Any]],
            Field(
                description=(
                    "Article or case records (max 100). Articles require id and title; "
                    "optional synopsis, body, system, modality, pathology, images, cases, "
                    "difficulty, tags, views. Standalone cases set kind='case' and require "
                    "id, title, diagnosis."
                ),
            ),
        ],
        ctx: Context | None = None,
    ) -> str:
        """Import externally fetched articles and cases.

        Existing entries are updated in place; new ones are created. A bad
        record is reported and skipped without aborting the batch.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        return import_records(ctx.lifespan_context["store"], records)

"""kb_manage MCP tool — administrative operations (manager mode only)."""

import logging
from pathlib import Path
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from clinical_kb.errors import KnowledgeBaseError
from clinical_kb.ingest.snapshot import default_export_path, load_snapshot, save_snapshot
from clinical_kb.store.knowledge_store import KnowledgeStore

logger = logging.getLogger(__name__)

_ACTIONS = {"delete", "clear", "export", "restore"}


def manage(
    store: KnowledgeStore,
    action: str,
    entry_id: str | None = None,
    path: str | None = None,
    confirm: bool = False,
) -> str:
    """Core kb_manage logic, testable without MCP context."""
    if action not in _ACTIONS:
        return f"Unknown action '{action}'. Use: {', '.join(sorted(_ACTIONS))}"

    if action == "delete":
        if not entry_id:
            return "Error: entry_id is required for delete action."
        try:
            store.delete(entry_id)
        except KnowledgeBaseError as e:
            return f"Error: {e}"
        return f"Deleted entry {entry_id}"

    if action == "clear":
        if not confirm:
            return "Error: clear deletes ALL entries. Pass confirm=True to proceed."
        count = len(store)
        store.clear_all()
        return f"Cleared {count} entries"

    if action == "export":
        target = Path(path) if path else default_export_path()
        count = save_snapshot(store, target)
        return f"Exported {count} entries to {target}"

    # restore
    if not path:
        return "Error: path is required for restore action."
    try:
        result = load_snapshot(store, Path(path))
    except (OSError, ValueError) as e:
        logger.warning("Restore from %s failed", path, exc_info=True)
        return f"Error: {e}"
    return f"Restored {result.total_stored} entries from {path} ({len(result.errors)} error(s))"


def register_kb_manage(mcp: FastMCP) -> None:
    """Register the kb_manage tool with the MCP server."""

    @mcp.tool()
    async def kb_manage(
        action: Annotated[
            str,
            Field(description="Maintenance action: delete, clear, export, restore"),
        ],
        entry_id: Annotated[
            str | None, Field(description="Required for delete")
        ] = None,
        path: Annotated[
            str | None,
            Field(description="Snapshot file for export (optional) and restore (required)"),
        ] = None,
        confirm: Annotated[bool, Field(description="Required True for clear")] = False,
        ctx: Context | None = None,
    ) -> str:
        """Administrative operations for the knowledge base.

        Requires KB_MANAGER=TRUE environment variable.

        Actions:
        - delete: Remove an entry (requires entry_id)
        - clear: Remove every entry (requires confirm=True)
        - export: Write a JSON snapshot (default: knowledge-base-export-YYYY-MM-DD.json)
        - restore: Replace the store with a JSON snapshot (requires path)
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        return manage(ctx.lifespan_context["store"], action, entry_id, path, confirm)

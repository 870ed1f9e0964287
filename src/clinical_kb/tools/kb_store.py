"""kb_store MCP tool — create and update individual entries."""

from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from clinical_kb.errors import KnowledgeBaseError
from clinical_kb.models.entry import Difficulty, EntrySource, EntryType, KnowledgeBaseEntry
from clinical_kb.store.knowledge_store import KnowledgeStore
from clinical_kb.tools.formatters import format_entry_compact


def format_store_result(entry: KnowledgeBaseEntry, is_update: bool = False) -> str:
    """Format the result of a store operation for the MCP response."""
    action = "Updated" if is_update else "Created"
    return f"{action} {entry.id}\n{format_entry_compact(entry)}"


def _metadata_updates(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def store_entry(
    store: KnowledgeStore,
    entry_id: str | None = None,
    title: str = "",
    content: str = "",
    entry_type: EntryType = EntryType.ARTICLE,
    system: str | None = None,
    modality: list[str] | None = None,
    pathology: list[str] | None = None,
    body_part: str | None = None,
    difficulty: Difficulty | None = None,
    tags: list[str] | None = None,
    related_entries: list[str] | None = None,
    update_entry_id: str | None = None,
) -> str:
    """Core kb_store logic, testable without MCP context.

    With ``update_entry_id`` only the fields that were given are changed;
    otherwise a new manual entry is created.
    """
    metadata = _metadata_updates(
        system=system,
        modality=modality,
        pathology=pathology,
        body_part=body_part,
        difficulty=difficulty,
        tags=tags,
    )

    # --- Update path ---
    if update_entry_id:
        updates: dict[str, Any] = {}
        if title:
            updates["title"] = title
        if content:
            updates["content"] = content
        if related_entries is not None:
            updates["related_entries"] = related_entries
        if metadata:
            updates["metadata"] = metadata
        if not updates:
            return "Error: Nothing to update. Pass at least one field to change."
        try:
            entry = store.update(update_entry_id, updates)
        except KnowledgeBaseError as e:
            return f"Error: {e}"
        return format_store_result(entry, is_update=True)

    # --- Create path ---
    if not entry_id or not title:
        return "Error: entry_id and title are required when creating a new entry."
    if entry_id in store:
        return f"Error: Entry {entry_id} already exists. Use update_entry_id to change it."
    try:
        entry = store.put(
            {
                "id": entry_id,
                "type": entry_type,
                "title": title,
                "content": content,
                "metadata": {**metadata, "source": EntrySource.MANUAL},
                "related_entries": related_entries or [],
            }
        )
    except KnowledgeBaseError as e:
        return f"Error: {e}"
    return format_store_result(entry)


def register_kb_store(mcp: FastMCP) -> None:
    """Register the kb_store tool with the MCP server."""

    @mcp.tool()
    async def kb_store(
        entry_id: Annotated[
            str | None, Field(description="ID for a new entry (e.g. aortic_dissection_001)")
        ] = None,
        title: Annotated[str, Field(description="Entry title")] = "",
        content: Annotated[str, Field(description="Full text of the entry")] = "",
        entry_type: Annotated[
            EntryType, Field(description="article, case or image")
        ] = EntryType.ARTICLE,
        system: Annotated[
            str | None, Field(description="Organ system (e.g. respiratory)")
        ] = None,
        modality: Annotated[
            list[str] | None, Field(description="Imaging modalities (e.g. CT, MR, X-ray)")
        ] = None,
        pathology: Annotated[list[str] | None, Field(description="Pathology terms")] = None,
        body_part: Annotated[str | None, Field(description="Body part")] = None,
        difficulty: Annotated[
            Difficulty | None, Field(description="basic, intermediate or advanced")
        ] = None,
        tags: Annotated[list[str] | None, Field(description="Freeform tags")] = None,
        related_entries: Annotated[
            list[str] | None, Field(description="IDs of explicitly related entries")
        ] = None,
        update_entry_id: Annotated[
            str | None,
            Field(description="ID of an existing entry to update; only given fields change"),
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Create or update a knowledge base entry.

        New entries need entry_id and title and are recorded as manual
        entries. Updates merge the given fields into the existing entry; the
        id, type and view count never change.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        return store_entry(
            ctx.lifespan_context["store"],
            entry_id=entry_id,
            title=title,
            content=content,
            entry_type=entry_type,
            system=system,
            modality=modality,
            pathology=pathology,
            body_part=body_part,
            difficulty=difficulty,
            tags=tags,
            related_entries=related_entries,
            update_entry_id=update_entry_id,
        )

"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from clinical_kb.config import (
    get_log_level,
    get_semantic_threshold,
    get_snapshot_path,
    is_manager_mode,
    should_seed_samples,
)
from clinical_kb.ingest.samples import seed_samples
from clinical_kb.ingest.snapshot import load_snapshot
from clinical_kb.search.semantic import EmbeddingProvider
from clinical_kb.store.knowledge_store import KnowledgeStore
from clinical_kb.tools.kb_get import register_kb_get
from clinical_kb.tools.kb_import import register_kb_import
from clinical_kb.tools.kb_manage import register_kb_manage
from clinical_kb.tools.kb_related import register_kb_related
from clinical_kb.tools.kb_search import register_kb_search
from clinical_kb.tools.kb_stats import register_kb_stats
from clinical_kb.tools.kb_store import register_kb_store

logger = logging.getLogger(__name__)


def build_store(
    snapshot_path: Path | None = None,
    seed: bool = False,
    embedder: EmbeddingProvider | None = None,
) -> KnowledgeStore:
    """Create the process-wide store, restoring a snapshot or seeding samples."""
    store = KnowledgeStore(embedder=embedder, semantic_threshold=get_semantic_threshold())
    if snapshot_path is not None and snapshot_path.exists():
        result = load_snapshot(store, snapshot_path)
        logger.info("Restored %d entries from %s", result.total_stored, snapshot_path)
    elif seed:
        seed_samples(store)
    return store


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Build the knowledge store once and share it with every tool."""
    # Configure logging to stderr (stdout is MCP stdio transport)
    logging.basicConfig(
        level=getattr(logging, get_log_level()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    store = build_store(get_snapshot_path(), seed=should_seed_samples())
    if store.has_embedding_engine:
        logger.info("Embedding engine configured — semantic search enabled")
    else:
        logger.warning("No embedding engine — semantic search falls back to keywords")
    logger.info("Knowledge base ready with %d entries", len(store))

    try:
        yield {"store": store}
    finally:
        logger.info("Knowledge base shut down")


_INSTRUCTIONS = """\
This server holds clinical reference material: radiology articles, teaching \
cases and annotated images, each tagged with organ system, imaging modality, \
pathology and body part.

QUERYING:
- kb_search: Keyword lookup with filters (type, system, modality, pathology, \
body_part, difficulty, source). Every query word must match. Returns ranked \
compact results plus suggested alternate terms.
- kb_get: Full content, images and links for specific entry IDs.
- kb_related: Entries linked to, or sharing metadata with, a given entry.
- kb_stats: Counts by type and breakdowns by system, modality, pathology.

IMPORTING:
- kb_import: Add or refresh articles and cases fetched from an external \
provider. Bad records are reported without aborting the batch.

WRITING:
- kb_store: Create a manual entry (entry_id and title required) or update an \
existing one with update_entry_id. Only the fields you pass are changed.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server with all tools."""
    mcp = FastMCP(
        "clinical-kb",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_kb_search(mcp)
    register_kb_get(mcp)
    register_kb_related(mcp)
    register_kb_stats(mcp)
    register_kb_import(mcp)
    register_kb_store(mcp)

    if is_manager_mode():
        register_kb_manage(mcp)

    return mcp

"""JSON snapshot files for export and restore."""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from clinical_kb.errors import ValidationError
from clinical_kb.models.imports import ImportResult
from clinical_kb.store.knowledge_store import KnowledgeStore

logger = logging.getLogger(__name__)


def default_export_path(now: datetime | None = None) -> Path:
    """knowledge-base-export-YYYY-MM-DD.json in the working directory."""
    now = now or datetime.now(UTC)
    return Path(f"knowledge-base-export-{now.date().isoformat()}.json")


def save_snapshot(store: KnowledgeStore, path: Path) -> int:
    """Write the full export to a JSON file. Returns the entry count."""
    export = store.export_all()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(export.model_dump(mode="json"), indent=2), encoding="utf-8")
    logger.info("Exported %d entries to %s", len(export.entries), path)
    return len(export.entries)


def load_snapshot(store: KnowledgeStore, path: Path, replace: bool = True) -> ImportResult:
    """Restore the store from a JSON export file.

    Raises FileNotFoundError, json.JSONDecodeError, or ValidationError for a
    file that is not an export.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValidationError(f"{path} is not a knowledge base export")
    result = store.import_from_export(data, replace=replace)
    logger.info("Loaded %d entries from %s", result.total_stored, path)
    return result

"""Command-line interface for searching and maintaining the knowledge base.

Usage:
    clinical-kb search "pneumothorax" --type article --system respiratory
    clinical-kb get pneumothorax_001
    clinical-kb related glioblastoma_001 --limit 3
    clinical-kb stats
    clinical-kb add aortic_001 "Aortic dissection" --system cardiovascular --modality CT
    clinical-kb update aortic_001 --tag emergency
    clinical-kb export my-backup.json
    clinical-kb import my-backup.json
    clinical-kb import-records fetched-articles.json
    clinical-kb clear --confirm

The store lives in memory. ``--snapshot`` (or KB_SNAPSHOT_PATH) names a JSON
export that is loaded on start and rewritten after every command that changes
entries.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from clinical_kb.config import (
    get_log_level,
    get_related_limit,
    get_search_limit,
    get_snapshot_path,
    should_seed_samples,
)
from clinical_kb.errors import KnowledgeBaseError
from clinical_kb.ingest.importer import import_batch
from clinical_kb.ingest.snapshot import default_export_path, load_snapshot, save_snapshot
from clinical_kb.models.entry import Difficulty, EntrySource, EntryType
from clinical_kb.models.search import SearchFilters
from clinical_kb.server import build_store
from clinical_kb.store.knowledge_store import KnowledgeStore
from clinical_kb.tools.formatters import format_stats
from clinical_kb.tools.kb_get import get_entries
from clinical_kb.tools.kb_import import format_import_result
from clinical_kb.tools.kb_related import related_for
from clinical_kb.tools.kb_search import search_entries
from clinical_kb.tools.kb_store import store_entry

logger = logging.getLogger(__name__)

_MUTATING = {"add", "update", "import", "import-records", "clear"}


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="clinical-kb", description="Search and maintain the clinical knowledge base"
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        default=None,
        help="JSON export loaded on start and saved after changes (default: KB_SNAPSHOT_PATH)",
    )
    parser.add_argument(
        "--seed", action="store_true", help="Load sample entries when no snapshot exists"
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: KB_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search the knowledge base")
    search.add_argument("query", nargs="?", default="", help="Keywords (all must match)")
    search.add_argument("--type", choices=[t.value for t in EntryType])
    search.add_argument("--system")
    search.add_argument("--modality")
    search.add_argument("--pathology")
    search.add_argument("--body-part")
    search.add_argument("--difficulty", choices=[d.value for d in Difficulty])
    search.add_argument("--source", choices=[s.value for s in EntrySource])
    search.add_argument("--limit", type=int, default=None)
    search.add_argument("--offset", type=int, default=0)
    search.add_argument("--semantic", action="store_true", help="Use semantic search")

    get = sub.add_parser("get", help="Show full entries by ID")
    get.add_argument("ids", nargs="+")

    related = sub.add_parser("related", help="Show entries related to an entry")
    related.add_argument("entry_id")
    related.add_argument("--limit", type=int, default=None)

    sub.add_parser("stats", help="Show knowledge base statistics")

    export = sub.add_parser("export", help="Export the knowledge base to JSON")
    export.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=None,
        help="Output file (default: knowledge-base-export-YYYY-MM-DD.json)",
    )

    restore = sub.add_parser("import", help="Import a JSON export")
    restore.add_argument("path", type=Path)
    restore.add_argument(
        "--merge", action="store_true", help="Keep existing entries instead of replacing them"
    )

    records = sub.add_parser("import-records", help="Import external article/case records")
    records.add_argument("path", type=Path, help="JSON file holding a list of records")

    add = sub.add_parser("add", help="Create a manual entry")
    add.add_argument("entry_id")
    add.add_argument("title")
    add.add_argument(
        "--type", choices=[t.value for t in EntryType], default=EntryType.ARTICLE.value
    )
    _add_entry_fields(add)

    update = sub.add_parser("update", help="Change fields of an existing entry")
    update.add_argument("entry_id")
    update.add_argument("--title", default="")
    _add_entry_fields(update)

    clear = sub.add_parser("clear", help="Delete ALL entries")
    clear.add_argument("--confirm", action="store_true")

    return parser


def _add_entry_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--content", default="")
    parser.add_argument("--system")
    parser.add_argument("--modality", action="append", help="Repeat for several modalities")
    parser.add_argument("--pathology", action="append", help="Repeat for several pathologies")
    parser.add_argument("--body-part")
    parser.add_argument("--difficulty", choices=[d.value for d in Difficulty])
    parser.add_argument("--tag", action="append", dest="tags")
    parser.add_argument("--related", action="append", help="ID of a related entry")


def _search(store: KnowledgeStore, args: argparse.Namespace) -> int:
    filters = SearchFilters(
        type=args.type,
        system=args.system,
        modality=args.modality,
        pathology=args.pathology,
        body_part=args.body_part,
        difficulty=args.difficulty,
        source=args.source,
    )
    output = search_entries(
        store,
        args.query,
        filters,
        limit=args.limit or get_search_limit(),
        offset=args.offset,
        semantic=args.semantic,
    )
    print(output)
    return 0


def _import_records(store: KnowledgeStore, path: Path) -> int:
    records = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(records, list):
        print(f"Error: {path} must contain a JSON list of records")
        return 1
    result = import_batch(store, records)
    print(format_import_result(result))
    return 0


def _store(store: KnowledgeStore, args: argparse.Namespace) -> int:
    creating = args.command == "add"
    output = store_entry(
        store,
        entry_id=args.entry_id if creating else None,
        title=args.title,
        content=args.content,
        entry_type=EntryType(args.type) if creating else EntryType.ARTICLE,
        system=args.system,
        modality=args.modality,
        pathology=args.pathology,
        body_part=args.body_part,
        difficulty=Difficulty(args.difficulty) if args.difficulty else None,
        tags=args.tags,
        related_entries=args.related,
        update_entry_id=None if creating else args.entry_id,
    )
    print(output)
    return 1 if output.startswith("Error:") else 0


def run(store: KnowledgeStore, args: argparse.Namespace) -> int:
    """Execute one subcommand against the store. Returns an exit code."""
    command = args.command
    if command == "search":
        return _search(store, args)
    if command == "get":
        print(get_entries(store, args.ids))
        return 0
    if command == "related":
        print(related_for(store, args.entry_id, args.limit or get_related_limit()))
        return 0
    if command == "stats":
        print(format_stats(store.get_stats()))
        return 0
    if command == "export":
        target = args.path or default_export_path()
        count = save_snapshot(store, target)
        print(f"Exported {count} entries to {target}")
        return 0
    if command in ("add", "update"):
        return _store(store, args)
    if command == "import":
        result = load_snapshot(store, args.path, replace=not args.merge)
        print(format_import_result(result))
        return 0
    if command == "import-records":
        return _import_records(store, args.path)
    if command == "clear":
        if not args.confirm:
            print("This will delete ALL knowledge base data. Re-run with --confirm.")
            return 1
        store.clear_all()
        print("Knowledge base cleared")
        return 0

    print(f"Unknown command: {command}")
    return 1


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, build the store, and run the command."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, (args.log_level or get_log_level()).upper()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    snapshot = args.snapshot or get_snapshot_path()
    try:
        store = build_store(snapshot, seed=args.seed or should_seed_samples())
        code = run(store, args)
        if code == 0 and snapshot is not None and args.command in _MUTATING:
            save_snapshot(store, snapshot)
            logger.info("Saved snapshot to %s", snapshot)
    except (OSError, json.JSONDecodeError, KnowledgeBaseError) as e:
        print(f"Error: {e}")
        return 1
    return code


if __name__ == "__main__":
    sys.exit(main())

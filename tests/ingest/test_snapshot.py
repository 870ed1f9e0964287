"""Tests for export, restore and snapshot files."""

import json
from datetime import UTC, datetime

import pytest

from clinical_kb.errors import ValidationError
from clinical_kb.ingest.snapshot import default_export_path, load_snapshot, save_snapshot
from clinical_kb.models.stats import SyncStatus
from clinical_kb.store.knowledge_store import KnowledgeStore
from tests.conftest import make_entry


def test_default_export_path():
    path = default_export_path(datetime(2024, 3, 9, 15, 0, tzinfo=UTC))
    assert path.name == "knowledge-base-export-2024-03-09.json"


def test_export_round_trip_restores_state(seeded_store):
    seeded_store.get("pneumothorax_001")
    seeded_store.set_sync_status(SyncStatus.ERROR)
    export = seeded_store.export_all()

    restored = KnowledgeStore()
    restored.put(make_entry("stale"))
    result = restored.import_from_export(export)

    assert result.imported == 2
    assert result.errors == []
    assert "stale" not in restored
    assert [e.model_dump() for e in restored.list_entries()] == [
        e.model_dump() for e in seeded_store.list_entries()
    ]
    assert restored.get_stats() == seeded_store.get_stats()
    assert restored.index_terms() == seeded_store.index_terms()


def test_import_merge_mode_keeps_existing(seeded_store):
    export = seeded_store.export_all()
    other = KnowledgeStore()
    other.put(make_entry("local"))
    result = other.import_from_export(export.model_dump(mode="json"), replace=False)

    assert result.imported == 2
    assert "local" in other
    assert len(other) == 3


def test_import_collects_bad_entries(store):
    payload = {
        "entries": [
            {"id": "ok", "type": "article", "title": "Fine"},
            {"id": "bad", "type": "article", "title": ""},
            {"id": "worse", "type": "podcast", "title": "Nope"},
        ]
    }
    result = store.import_from_export(payload)
    assert result.imported == 1
    assert [e.record_id for e in result.errors] == ["bad", "worse"]
    assert list(store.list_entries())[0].id == "ok"


def test_import_rejects_missing_entries(store):
    with pytest.raises(ValidationError, match="entries"):
        store.import_from_export({"stats": {}})


def test_save_and_load_snapshot(seeded_store, tmp_path):
    path = tmp_path / "nested" / "kb.json"
    count = save_snapshot(seeded_store, path)
    assert count == 2

    data = json.loads(path.read_text())
    assert {e["id"] for e in data["entries"]} == {"pneumothorax_001", "glioblastoma_001"}
    assert "export_date" in data
    assert data["stats"]["total_articles"] == 2

    restored = KnowledgeStore()
    result = load_snapshot(restored, path)
    assert result.total_stored == 2
    assert restored.get_stats() == seeded_store.get_stats()
    assert restored.peek("glioblastoma_001").metadata.views == 2100


def test_load_snapshot_rejects_non_object(store, tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValidationError):
        load_snapshot(store, path)


def test_load_snapshot_missing_file(store, tmp_path):
    with pytest.raises(FileNotFoundError):
        load_snapshot(store, tmp_path / "absent.json")

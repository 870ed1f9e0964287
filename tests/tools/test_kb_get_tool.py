"""Tests for the kb_get MCP tool logic."""

from clinical_kb.tools.kb_get import get_entries


def test_get_single_entry(seeded_store):
    output = get_entries(seeded_store, ["pneumothorax_001"])
    assert "[pneumothorax_001] article | Pneumothorax (1251 views)" in output
    assert "Pathology: pneumothorax" in output
    assert "image pneumothorax_xray_001" in output


def test_get_counts_views(seeded_store):
    get_entries(seeded_store, ["glioblastoma_001"])
    get_entries(seeded_store, ["glioblastoma_001"])
    assert seeded_store.peek("glioblastoma_001").metadata.views == 2102


def test_get_mixed_found_and_missing(seeded_store):
    output = get_entries(seeded_store, ["glioblastoma_001", "nope"])
    assert "2 result(s)" in output
    assert "[glioblastoma_001]" in output
    assert "[nope] not found" in output


def test_get_too_many_ids(store):
    output = get_entries(store, [f"e{i}" for i in range(21)])
    assert output.startswith("Error: Maximum 20 IDs")

"""Tests for the kb_related MCP tool logic."""

from unittest.mock import patch

from clinical_kb.tools.kb_related import related_for
from tests.conftest import make_entry


def test_related_unknown_entry(store):
    assert related_for(store, "ghost") == "[ghost] not found"


def test_related_lists_similar(store):
    store.put(make_entry("src", title="Source", system="cardiac"))
    store.put(make_entry("other", system="cardiac"))
    output = related_for(store, "src")
    assert output.splitlines()[0] == "Related to [src] Source"
    assert "[other]" in output


def test_related_none_found(seeded_store):
    output = related_for(seeded_store, "pneumothorax_001")
    assert "No results found." in output


def test_related_does_not_count_views(seeded_store):
    related_for(seeded_store, "pneumothorax_001")
    assert seeded_store.peek("pneumothorax_001").metadata.views == 1250


def test_related_default_limit_from_env(store):
    store.put(make_entry("src", system="renal"))
    for i in range(4):
        store.put(make_entry(f"e{i}", system="renal"))
    with patch.dict("os.environ", {"KB_RELATED_LIMIT": "2"}):
        output = related_for(store, "src")
    assert "2 result(s)" in output

"""Shared test fixtures."""

from typing import Any

import pytest

from clinical_kb.ingest.samples import seed_samples
from clinical_kb.models.entry import EntryMetadata, EntryType, KnowledgeBaseEntry
from clinical_kb.store.knowledge_store import KnowledgeStore


def make_entry(
    entry_id: str,
    title: str | None = None,
    content: str = "",
    entry_type: EntryType = EntryType.ARTICLE,
    related: list[str] | None = None,
    **metadata: Any,
) -> KnowledgeBaseEntry:
    """Build an entry with sensible defaults; metadata fields as kwargs."""
    return KnowledgeBaseEntry(
        id=entry_id,
        type=entry_type,
        title=title or entry_id.replace("_", " ").title(),
        content=content,
        metadata=EntryMetadata(**metadata),
        related_entries=related or [],
    )


class FakeEmbedder:
    """Deterministic embedder keyed on known query strings.

    Unknown text returns None, mimicking an unavailable engine.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None, fail: bool = False):
        self.vectors = vectors or {}
        self.fail = fail
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float] | None:
        self.calls.append(text)
        if self.fail:
            raise RuntimeError("embedding backend exploded")
        return self.vectors.get(text)


@pytest.fixture
def store():
    """Empty knowledge store without an embedding engine."""
    return KnowledgeStore()


@pytest.fixture
def seeded_store(store):
    """Store holding the two sample articles."""
    seed_samples(store)
    return store


@pytest.fixture
def entry_factory():
    """Expose make_entry to tests as a fixture."""
    return make_entry

"""Tests for keyword search, filters, ranking and pagination."""

from clinical_kb.models.entry import Difficulty, EntrySource, EntryType
from clinical_kb.models.search import SearchFilters, SearchQuery
from clinical_kb.search.keyword import matches_filters, rank_entries
from tests.conftest import make_entry


def _ids(result):
    return [e.id for e in result.entries]


# --- matching ---


def test_empty_text_returns_everything(seeded_store):
    result = seeded_store.search(SearchQuery())
    assert result.total_count == 2
    assert _ids(result) == ["glioblastoma_001", "pneumothorax_001"]


def test_whitespace_text_is_empty(seeded_store):
    assert seeded_store.search(text="   ").total_count == 2


def test_tokens_are_and_combined(store):
    store.put(make_entry("a", title="brain tumor"))
    store.put(make_entry("b", title="brain stroke"))
    store.put(make_entry("c", title="lung tumor"))

    assert _ids(store.search(text="brain tumor")) == ["a"]
    assert sorted(_ids(store.search(text="tumor"))) == ["a", "c"]


def test_search_is_case_insensitive(seeded_store):
    assert _ids(seeded_store.search(text="PNEUMOTHORAX")) == ["pneumothorax_001"]


def test_query_of_only_short_tokens_matches_nothing(seeded_store):
    result = seeded_store.search(text="of a")
    assert result.total_count == 0
    assert result.entries == []


def test_short_tokens_ignored_alongside_long_ones(seeded_store):
    assert _ids(seeded_store.search(text="air in the pleural")) == ["pneumothorax_001"]


def test_tags_and_pathology_are_searchable(seeded_store):
    assert _ids(seeded_store.search(text="oncology")) == ["glioblastoma_001"]
    assert _ids(seeded_store.search(text="emergency")) == ["pneumothorax_001"]


def test_no_match_returns_empty(seeded_store):
    result = seeded_store.search(text="sarcoidosis")
    assert result.total_count == 0
    assert result.match_source == "keyword"


# --- filters ---


def test_modality_filter(seeded_store):
    assert _ids(seeded_store.search(filters={"modality": "MR"})) == ["glioblastoma_001"]
    assert _ids(seeded_store.search(filters={"modality": "CT"})) == ["pneumothorax_001"]
    assert seeded_store.search(filters={"modality": "US"}).total_count == 0


def test_pathology_filter_is_substring(seeded_store):
    assert _ids(seeded_store.search(filters={"pathology": "tumor"})) == ["glioblastoma_001"]
    assert _ids(seeded_store.search(filters={"pathology": "pneumo"})) == ["pneumothorax_001"]


def test_filters_combine_with_and(seeded_store):
    result = seeded_store.search(
        filters={"system": "respiratory", "difficulty": "advanced"},
    )
    assert result.total_count == 0
    result = seeded_store.search(
        filters={"system": "respiratory", "difficulty": "intermediate", "body_part": "chest"},
    )
    assert _ids(result) == ["pneumothorax_001"]


def test_type_and_source_filters(store):
    store.put(make_entry("a", source=EntrySource.EXTERNAL))
    store.put(make_entry("c", entry_type=EntryType.CASE))
    assert _ids(store.search(filters={"type": "case"})) == ["c"]
    assert _ids(store.search(filters={"source": "external"})) == ["a"]


def test_entries_without_lists_fail_list_filters():
    entry = make_entry("bare")
    assert not matches_filters(entry, SearchFilters(modality="CT"))
    assert not matches_filters(entry, SearchFilters(pathology="mass"))
    assert matches_filters(entry, SearchFilters())
    assert matches_filters(entry, None)


def test_difficulty_filter_rejects_unset():
    entry = make_entry("e", difficulty=None)
    assert not matches_filters(entry, SearchFilters(difficulty=Difficulty.BASIC))


# --- ranking ---


def test_rank_by_views_descending(store):
    store.put(make_entry("low", title="chest", views=1))
    store.put(make_entry("high", title="chest", views=100))
    store.put(make_entry("mid", title="chest", views=50))
    assert _ids(store.search(text="chest")) == ["high", "mid", "low"]


def test_rank_by_relevance_when_both_scored():
    a = make_entry("a", views=1000, relevance_score=0.2)
    b = make_entry("b", views=1, relevance_score=0.9)
    assert [e.id for e in rank_entries([a, b])] == ["b", "a"]


def test_rank_mixed_scores_uses_views():
    scored = make_entry("scored", views=1, relevance_score=0.99)
    unscored = make_entry("unscored", views=10)
    assert [e.id for e in rank_entries([scored, unscored])] == ["unscored", "scored"]


def test_rank_ties_broken_by_id():
    entries = [make_entry(eid, views=5) for eid in ["c", "a", "b"]]
    assert [e.id for e in rank_entries(entries)] == ["a", "b", "c"]
    assert [e.id for e in rank_entries(reversed(entries))] == ["a", "b", "c"]


# --- pagination ---


def test_pagination(store):
    for i in range(7):
        store.put(make_entry(f"e{i}", title="chest film", views=i))

    first = store.search(text="chest", limit=3)
    assert first.total_count == 7
    assert _ids(first) == ["e6", "e5", "e4"]

    last = store.search(text="chest", limit=3, offset=6)
    assert last.total_count == 7
    assert _ids(last) == ["e0"]

    beyond = store.search(text="chest", limit=3, offset=10)
    assert beyond.total_count == 7
    assert beyond.entries == []


def test_search_does_not_count_views(seeded_store):
    seeded_store.search(text="pneumothorax")
    assert seeded_store.peek("pneumothorax_001").metadata.views == 1250


def test_search_time_is_reported(seeded_store):
    result = seeded_store.search(text="brain")
    assert result.search_time_ms >= 0

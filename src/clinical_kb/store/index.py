"""Inverted index mapping normalized terms to entry ids."""

import logging

from clinical_kb.models.entry import KnowledgeBaseEntry

logger = logging.getLogger(__name__)

# Tokens shorter than this are dropped (articles, prepositions, and also "MS", "TB")
MIN_TOKEN_LENGTH = 3


def tokenize(text: str) -> list[str]:
    """Lower-case whitespace tokenization, dropping short tokens.

    Used for both indexing and querying so the two always agree.
    """
    return [token for token in text.lower().split() if len(token) >= MIN_TOKEN_LENGTH]


class InvertedIndex:
    """term -> set of entry ids, with a reverse map for cheap removal."""

    def __init__(self) -> None:
        """Start empty."""
        self._postings: dict[str, set[str]] = {}
        self._terms_by_entry: dict[str, set[str]] = {}

    def add(self, entry: KnowledgeBaseEntry) -> None:
        """Index an entry, replacing any postings from its previous version."""
        self.remove(entry.id)
        terms = set(tokenize(entry.indexable_text))
        for term in terms:
            self._postings.setdefault(term, set()).add(entry.id)
        if terms:
            self._terms_by_entry[entry.id] = terms
        logger.debug("Indexed %s under %d terms", entry.id, len(terms))

    def remove(self, entry_id: str) -> None:
        """Drop every posting for an entry. Unknown ids are a no-op."""
        terms = self._terms_by_entry.pop(entry_id, set())
        for term in terms:
            ids = self._postings.get(term)
            if ids is None:
                continue
            ids.discard(entry_id)
            if not ids:
                del self._postings[term]

    def lookup(self, term: str) -> set[str]:
        """Return a copy of the posting set for a term (empty if unknown)."""
        return set(self._postings.get(term, ()))

    def intersect(self, terms: list[str]) -> set[str]:
        """Ids present in the posting set of every term (AND semantics)."""
        if not terms:
            return set()
        # Smallest posting set first keeps the intersection cheap
        sets = sorted((self._postings.get(t, set()) for t in set(terms)), key=len)
        result = set(sets[0])
        for ids in sets[1:]:
            result &= ids
            if not result:
                break
        return result

    def terms(self) -> list[str]:
        """All indexed terms."""
        return list(self._postings)

    def postings_for(self, entry_id: str) -> set[str]:
        """Terms an entry is currently indexed under."""
        return set(self._terms_by_entry.get(entry_id, ()))

    def clear(self) -> None:
        """Remove every posting."""
        self._postings.clear()
        self._terms_by_entry.clear()

    def __contains__(self, term: object) -> bool:
        return term in self._postings

    def __len__(self) -> int:
        return len(self._postings)

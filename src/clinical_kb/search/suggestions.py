"""Alternate-term suggestions for search queries."""

from clinical_kb.store.index import MIN_TOKEN_LENGTH, InvertedIndex

MAX_SUGGESTIONS = 5

# Curated domain vocabulary offered even when not yet indexed
CURATED_TERMS: tuple[str, ...] = (
    "pneumothorax",
    "pneumonia",
    "atelectasis",
    "consolidation",
    "glioblastoma",
    "meningioma",
    "stroke",
    "hemorrhage",
    "fracture",
    "dislocation",
    "arthritis",
    "stenosis",
)


def suggest_terms(index: InvertedIndex, query: str, limit: int = MAX_SUGGESTIONS) -> list[str]:
    """Indexed terms starting with the query, then curated terms containing it."""
    if not query or len(query) < MIN_TOKEN_LENGTH:
        return []
    needle = query.lower()

    suggestions: list[str] = []
    seen: set[str] = set()
    prefixed = sorted(t for t in index.terms() if t.startswith(needle) and t != needle)
    curated = [t for t in CURATED_TERMS if needle in t]
    for term in prefixed + curated:
        if term in seen:
            continue
        seen.add(term)
        suggestions.append(term)
        if len(suggestions) >= limit:
            break
    return suggestions

"""Metadata similarity for related-entry recommendations."""

from collections.abc import Mapping

from clinical_kb.models.entry import KnowledgeBaseEntry

# Score weights
SYSTEM_WEIGHT = 3
MODALITY_WEIGHT = 2
PATHOLOGY_WEIGHT = 2
BODY_PART_WEIGHT = 1


def _pathology_overlaps(candidate: str, source: list[str]) -> bool:
    # Substring either way matches general and specific terms (tumor / brain tumor)
    if not candidate.strip():
        return False
    return any(p.strip() and (candidate in p or p in candidate) for p in source)


def similarity_score(entry: KnowledgeBaseEntry, candidate: KnowledgeBaseEntry) -> int:
    """Relatedness of candidate to entry from overlapping metadata.

    +3 same system, +2 per shared modality, +2 per overlapping pathology,
    +1 same body part. Unset system/body part never match.
    """
    a, b = entry.metadata, candidate.metadata
    score = 0
    if a.system and a.system == b.system:
        score += SYSTEM_WEIGHT
    score += MODALITY_WEIGHT * sum(1 for m in b.modality if m in a.modality)
    score += PATHOLOGY_WEIGHT * sum(1 for p in b.pathology if _pathology_overlaps(p, a.pathology))
    if a.body_part and a.body_part == b.body_part:
        score += BODY_PART_WEIGHT
    return score


def find_related(
    entries: Mapping[str, KnowledgeBaseEntry],
    entry: KnowledgeBaseEntry,
    limit: int,
) -> list[KnowledgeBaseEntry]:
    """Explicit links first (dangling ids skipped), then the most similar entries.

    Equal scores are ordered by id so repeated calls return the same list.
    """
    if limit <= 0:
        return []

    related: list[KnowledgeBaseEntry] = []
    seen = {entry.id}
    for rid in entry.related_entries:
        target = entries.get(rid)
        if target is None or rid in seen:
            continue
        seen.add(rid)
        related.append(target)
        if len(related) >= limit:
            return related

    scored: list[tuple[int, str]] = []
    for cid, candidate in entries.items():
        if cid in seen:
            continue
        score = similarity_score(entry, candidate)
        if score > 0:
            scored.append((score, cid))
    scored.sort(key=lambda pair: (-pair[0], pair[1]))

    for _score, cid in scored[: limit - len(related)]:
        related.append(entries[cid])
    return related

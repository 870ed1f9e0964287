"""Compact output formatters for tool and CLI responses."""

from clinical_kb.models.entry import KnowledgeBaseEntry
from clinical_kb.models.stats import KnowledgeBaseStats

_SNIPPET_LENGTH = 100
_TOP_PATHOLOGIES = 10


def format_entry_header(entry: KnowledgeBaseEntry) -> str:
    """Format: [pneumothorax_001] article | Pneumothorax (1250 views)."""
    return f"[{entry.id}] {entry.type.value} | {entry.title} ({entry.metadata.views} views)"


def format_entry_meta(entry: KnowledgeBaseEntry) -> str:
    """Format: respiratory | X-ray, CT | chest | #tag1 #tag2."""
    meta = entry.metadata
    parts: list[str] = []
    if meta.system:
        parts.append(meta.system)
    if meta.modality:
        parts.append(", ".join(meta.modality))
    if meta.body_part:
        parts.append(meta.body_part)
    if meta.tags:
        parts.append(" ".join(f"#{t}" for t in meta.tags))
    return " | ".join(parts)


def format_entry_compact(entry: KnowledgeBaseEntry) -> str:
    """Header + meta + content snippet. For search and related listings."""
    lines = [format_entry_header(entry)]
    meta = format_entry_meta(entry)
    if meta:
        lines.append(f"  {meta}")
    snippet = " ".join(entry.content.split())
    if len(snippet) > _SNIPPET_LENGTH:
        snippet = snippet[:_SNIPPET_LENGTH].rstrip() + "..."
    if snippet:
        lines.append(f"  {snippet}")
    if entry.images:
        lines.append(f"  Images: {len(entry.images)} available")
    return "\n".join(lines)


def format_entry_full(entry: KnowledgeBaseEntry) -> str:
    """Header + meta + pathology + full content + images. For kb_get."""
    lines = [format_entry_header(entry)]
    meta = format_entry_meta(entry)
    if meta:
        lines.append(f"  {meta}")
    if entry.metadata.pathology:
        lines.append(f"  Pathology: {', '.join(entry.metadata.pathology)}")
    lines.append(f"  {entry.content}")
    for image in entry.images:
        caption = f": {image.caption}" if image.caption else ""
        lines.append(f"  ↳ image {image.id}{caption}")
    if entry.related_entries:
        lines.append(f"  Related: {', '.join(entry.related_entries)}")
    return "\n".join(lines)


def format_result_list(
    formatted_entries: list[str],
    header: str | None = None,
    note: str | None = None,
    suggestions: list[str] | None = None,
) -> str:
    """Header + count + note + entries joined by blank lines, optional suggestions."""
    lines: list[str] = []
    if header:
        lines.append(header)
    if not formatted_entries:
        lines.append("No results found.")
    else:
        lines.append(f"{len(formatted_entries)} result(s)")
        if note:
            lines.append(f"Note: {note}")
        lines.append("")
        lines.append("\n\n".join(formatted_entries))
    if suggestions:
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(f"  - {s}" for s in suggestions)
    return "\n".join(lines)


def _breakdown(title: str, counts: dict[str, int], limit: int | None = None) -> list[str]:
    if not counts:
        return []
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    if limit is not None:
        ordered = ordered[:limit]
    return ["", title] + [f"  {name}: {count}" for name, count in ordered]


def format_stats(stats: KnowledgeBaseStats) -> str:
    """Totals, then breakdowns sorted by count (top pathologies only)."""
    lines = [
        "Knowledge Base Statistics",
        "",
        f"Total articles: {stats.total_articles}",
        f"Total cases: {stats.total_cases}",
        f"Total images: {stats.total_images}",
        f"Last updated: {stats.last_updated.isoformat(timespec='seconds')}",
        f"Sync status: {stats.sync_status.value}",
    ]
    lines += _breakdown("Modality breakdown:", stats.modality_breakdown)
    lines += _breakdown("System breakdown:", stats.system_breakdown)
    lines += _breakdown("Top pathologies:", stats.pathology_breakdown, limit=_TOP_PATHOLOGIES)
    return "\n".join(lines)

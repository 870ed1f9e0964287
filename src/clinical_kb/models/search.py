"""Search-related models."""

from pydantic import BaseModel, Field

from clinical_kb.models.entry import Difficulty, EntrySource, EntryType, KnowledgeBaseEntry


class SearchFilters(BaseModel):
    """Metadata filters; every field that is set must match."""

    type: EntryType | None = None
    system: str | None = None
    modality: str | None = None
    pathology: str | None = None
    body_part: str | None = None
    difficulty: Difficulty | None = None
    source: EntrySource | None = None

    def is_empty(self) -> bool:
        """True when no filter field is set."""
        return not self.model_dump(exclude_none=True)


class SearchQuery(BaseModel):
    """Parameters for a knowledge base search."""

    text: str = ""
    filters: SearchFilters | None = None
    limit: int = Field(default=50, ge=1)
    offset: int = Field(default=0, ge=0)
    semantic: bool = False


class SearchResult(BaseModel):
    """Ranked, paginated matches plus suggestions."""

    entries: list[KnowledgeBaseEntry] = Field(default_factory=list)
    total_count: int = 0
    search_time_ms: float = 0.0
    suggestions: list[str] = Field(default_factory=list)
    match_source: str = "keyword"  # "keyword", "semantic"

"""Knowledge base entry models."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(UTC)


class EntryType(StrEnum):
    """Kind of clinical reference material."""

    ARTICLE = "article"
    CASE = "case"
    IMAGE = "image"


class EntrySource(StrEnum):
    """Where an entry came from."""

    EXTERNAL = "external"
    MANUAL = "manual"
    GENERATED = "generated"


class Difficulty(StrEnum):
    """Teaching difficulty level."""

    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class EntryMetadata(BaseModel):
    """Structured metadata used for filtering, statistics and similarity."""

    system: str | None = None
    modality: list[str] = Field(default_factory=list)
    pathology: list[str] = Field(default_factory=list)
    body_part: str | None = None
    difficulty: Difficulty | None = None
    tags: list[str] = Field(default_factory=list)
    source: EntrySource = EntrySource.MANUAL
    source_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    views: int = Field(default=0, ge=0)
    relevance_score: float | None = None

    @field_validator("source_id", mode="before")
    @classmethod
    def _coerce_source_id(cls, value: object) -> object:
        # External providers use numeric ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("modality", "pathology", "tags", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class EntryImage(BaseModel):
    """An image owned by an entry."""

    id: str
    url: str
    thumbnail_url: str | None = None
    caption: str = ""
    annotations: list[dict[str, object]] = Field(default_factory=list)


class KnowledgeBaseEntry(BaseModel):
    """A single stored article, teaching case or image."""

    id: str
    type: EntryType
    title: str
    content: str = ""
    metadata: EntryMetadata = Field(default_factory=EntryMetadata)
    images: list[EntryImage] = Field(default_factory=list)
    related_entries: list[str] = Field(default_factory=list)
    embedding: list[float] | None = None

    @property
    def indexable_text(self) -> str:
        """Text fed to the inverted index."""
        meta = self.metadata
        parts = [
            self.title,
            self.content,
            *meta.tags,
            *meta.pathology,
            meta.system or "",
            meta.body_part or "",
        ]
        return " ".join(parts)

"""Aggregate statistics and export snapshot models."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from clinical_kb.models.entry import KnowledgeBaseEntry


class SyncStatus(StrEnum):
    """State of the most recent import."""

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


class KnowledgeBaseStats(BaseModel):
    """Running counts by type, system, modality and pathology."""

    total_articles: int = 0
    total_cases: int = 0
    total_images: int = 0
    system_breakdown: dict[str, int] = Field(default_factory=dict)
    modality_breakdown: dict[str, int] = Field(default_factory=dict)
    pathology_breakdown: dict[str, int] = Field(default_factory=dict)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sync_status: SyncStatus = SyncStatus.IDLE

    @property
    def total_entries(self) -> int:
        """Entries of every type."""
        return self.total_articles + self.total_cases + self.total_images

    def counts(self) -> dict[str, object]:
        """Everything except timestamps and status, for consistency checks."""
        return self.model_dump(exclude={"last_updated", "sync_status"})


class KnowledgeBaseExport(BaseModel):
    """Full-fidelity snapshot of the store."""

    entries: list[KnowledgeBaseEntry] = Field(default_factory=list)
    stats: KnowledgeBaseStats = Field(default_factory=KnowledgeBaseStats)
    export_date: datetime = Field(default_factory=lambda: datetime.now(UTC))

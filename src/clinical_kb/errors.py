"""Error kinds raised by the knowledge base."""

from pydantic import BaseModel


class KnowledgeBaseError(Exception):
    """Base class for knowledge base errors."""


class ValidationError(KnowledgeBaseError, ValueError):
    """An entry is malformed and cannot be stored."""


class NotFoundError(KnowledgeBaseError, LookupError):
    """An update or delete targeted an unknown entry id."""

    def __init__(self, entry_id: str):
        """Initialize with the missing entry id."""
        super().__init__(f"Entry {entry_id} not found")
        self.entry_id = entry_id


class StatisticsError(KnowledgeBaseError, RuntimeError):
    """A statistics counter would drop below zero."""


class ImportRecordError(BaseModel):
    """One failed record inside an import batch. Collected, never raised."""

    record_id: str
    message: str

    def __str__(self) -> str:
        return f"Failed to import record {self.record_id}: {self.message}"

"""Import outcome models."""

from pydantic import BaseModel, Field

from clinical_kb.errors import ImportRecordError


class ImportResult(BaseModel):
    """Counts from a batch import. Failed records are listed, not raised."""

    imported: int = 0
    updated: int = 0
    errors: list[ImportRecordError] = Field(default_factory=list)

    @property
    def total_stored(self) -> int:
        """Entries written by the batch."""
        return self.imported + self.updated

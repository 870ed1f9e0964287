"""Batch import of external article and case records."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from clinical_kb.errors import ImportRecordError, ValidationError
from clinical_kb.ingest.records import (
    CaseStudy,
    ExternalArticle,
    ExternalCase,
    ExternalImage,
)
from clinical_kb.models.entry import (
    EntryImage,
    EntryMetadata,
    EntrySource,
    EntryType,
    KnowledgeBaseEntry,
)
from clinical_kb.models.imports import ImportResult
from clinical_kb.models.stats import SyncStatus
from clinical_kb.store.knowledge_store import KnowledgeStore

logger = logging.getLogger(__name__)

ExternalRecord = ExternalArticle | ExternalCase | Mapping[str, Any]


def article_entry_id(article_id: int) -> str:
    """Entry id derived from an external article id."""
    return f"external_article_{article_id}"


def case_entry_id(case_id: int) -> str:
    """Entry id derived from an external case id."""
    return f"external_case_{case_id}"


def _image(img: ExternalImage, prefix: str) -> EntryImage:
    return EntryImage(
        id=f"{prefix}_{img.id}",
        url=img.image_url,
        thumbnail_url=img.thumbnail_url,
        caption=img.caption,
        annotations=[a.model_dump(exclude_none=True) for a in img.annotations],
    )


def _case_images(studies: list[CaseStudy]) -> list[EntryImage]:
    return [_image(img, "external_case_image") for study in studies for img in study.images]


def article_to_entries(article: ExternalArticle) -> list[KnowledgeBaseEntry]:
    """Convert an article into its own entry plus one entry per nested case."""
    entry_id = article_entry_id(article.id)
    metadata: dict[str, Any] = {
        "system": article.system,
        "modality": article.modality,
        "pathology": article.pathology,
        "difficulty": article.difficulty,
        "tags": article.tags,
        "source": EntrySource.EXTERNAL,
        "source_id": str(article.id),
        "views": article.views,
    }
    if article.created_at is not None:
        metadata["created_at"] = article.created_at
    if article.updated_at is not None:
        metadata["updated_at"] = article.updated_at

    cases = [case_to_entry(case, parent=article) for case in article.cases]
    entry = KnowledgeBaseEntry(
        id=entry_id,
        type=EntryType.ARTICLE,
        title=article.title,
        content=f"{article.synopsis}\n\n{article.body}",
        metadata=EntryMetadata(**metadata),
        images=[_image(img, "external_image") for img in article.images],
        related_entries=[c.id for c in cases],
    )
    return [entry, *cases]


def case_to_entry(case: ExternalCase, parent: ExternalArticle | None = None) -> KnowledgeBaseEntry:
    """Convert a case into an entry, back-linked to its parent article if any."""
    parent_id = parent.id if parent is not None else case.parent_article_id
    content = (
        f"{case.patient_data.presentation}\n\n"
        f"Diagnosis: {case.diagnosis}\n\n"
        f"Discussion: {case.discussion}"
    )
    body_part = next((s.body_part for s in case.studies if s.body_part), None)
    return KnowledgeBaseEntry(
        id=case_entry_id(case.id),
        type=EntryType.CASE,
        title=case.title,
        content=content,
        metadata=EntryMetadata(
            system=case.system or (parent.system if parent is not None else None),
            # Preserve study order, drop repeats
            modality=list(dict.fromkeys(s.modality for s in case.studies)),
            pathology=[p for p in (case.diagnosis, *case.differential_diagnosis) if p.strip()],
            body_part=body_part,
            source=EntrySource.EXTERNAL,
            source_id=str(case.id),
        ),
        images=_case_images(case.studies),
        related_entries=[article_entry_id(parent_id)] if parent_id is not None else [],
    )


def record_to_entries(record: ExternalRecord) -> list[KnowledgeBaseEntry]:
    """Parse one record (model or dict) and convert it to entries.

    A mapping with ``"kind": "case"`` is a standalone case; anything else is
    treated as an article.
    """
    if isinstance(record, ExternalArticle):
        return article_to_entries(record)
    if isinstance(record, ExternalCase):
        return [case_to_entry(record)]
    if not isinstance(record, Mapping):
        raise ValidationError(f"Unsupported record type: {type(record).__name__}")
    if record.get("kind") == "case":
        return [case_to_entry(ExternalCase.model_validate(record))]
    return article_to_entries(ExternalArticle.model_validate(record))


def _describe(record: object) -> str:
    if isinstance(record, ExternalArticle | ExternalCase):
        return f"{record.kind} {record.id}"
    if isinstance(record, Mapping):
        kind = record.get("kind", "article")
        return f"{kind} {record.get('id', '<unknown>')}"
    return "<unknown>"


def _error_message(exc: Exception) -> str:
    if isinstance(exc, PydanticValidationError):
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        return f"invalid fields: {fields}"
    return str(exc)


def import_batch(store: KnowledgeStore, records: Iterable[ExternalRecord]) -> ImportResult:
    """Import records into the store, isolating per-record failures.

    Each record's entries are converted and validated before anything is
    written, so a failed record leaves no partial state. Ids already in the
    store are merged (``updated``), new ones inserted (``imported``).
    """
    result = ImportResult()
    for record in records:
        try:
            entries = record_to_entries(record)
            created, updated = store.upsert_many(entries)
        except (PydanticValidationError, ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping %s: %s", _describe(record), e)
            result.errors.append(
                ImportRecordError(record_id=_describe(record), message=_error_message(e))
            )
            continue
        result.imported += created
        result.updated += updated

    store.set_sync_status(SyncStatus.ERROR if result.errors else SyncStatus.IDLE)
    logger.info(
        "Import batch: %d imported, %d updated, %d errors",
        result.imported,
        result.updated,
        len(result.errors),
    )
    return result

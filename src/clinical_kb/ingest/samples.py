"""Demonstration entries for an empty knowledge base."""

import logging

from clinical_kb.models.entry import (
    Difficulty,
    EntryImage,
    EntryMetadata,
    EntrySource,
    EntryType,
    KnowledgeBaseEntry,
)
from clinical_kb.store.knowledge_store import KnowledgeStore

logger = logging.getLogger(__name__)


def sample_entries() -> list[KnowledgeBaseEntry]:
    """Two fully populated reference articles."""
    return [
        KnowledgeBaseEntry(
            id="pneumothorax_001",
            type=EntryType.ARTICLE,
            title="Pneumothorax",
            content=(
                "Pneumothorax is the presence of air in the pleural space, which can cause "
                "partial or complete lung collapse. It can be spontaneous, traumatic, or "
                "iatrogenic."
            ),
            metadata=EntryMetadata(
                system="respiratory",
                modality=["X-ray", "CT"],
                pathology=["pneumothorax"],
                body_part="chest",
                difficulty=Difficulty.INTERMEDIATE,
                tags=["emergency", "chest", "lung"],
                source=EntrySource.EXTERNAL,
                source_id="123",
                views=1250,
            ),
            images=[
                EntryImage(
                    id="pneumothorax_xray_001",
                    url="https://example.com/pneumothorax_xray.jpg",
                    thumbnail_url="https://example.com/pneumothorax_xray_thumb.jpg",
                    caption="Chest X-ray showing right-sided pneumothorax with visible pleural line",
                    annotations=[
                        {
                            "x": 300,
                            "y": 200,
                            "width": 100,
                            "height": 150,
                            "label": "Pleural line",
                            "finding_type": "abnormal",
                        }
                    ],
                )
            ],
            related_entries=["pleural_effusion_001", "chest_trauma_001"],
        ),
        KnowledgeBaseEntry(
            id="glioblastoma_001",
            type=EntryType.ARTICLE,
            title="Glioblastoma Multiforme",
            content=(
                "Glioblastoma multiforme (GBM) is the most common and aggressive primary brain "
                "tumor in adults. It typically shows heterogeneous enhancement with central "
                "necrosis."
            ),
            metadata=EntryMetadata(
                system="neurological",
                modality=["MR"],
                pathology=["glioblastoma", "brain tumor"],
                body_part="brain",
                difficulty=Difficulty.ADVANCED,
                tags=["oncology", "brain", "malignant"],
                source=EntrySource.EXTERNAL,
                source_id="456",
                views=2100,
            ),
            images=[
                EntryImage(
                    id="gbm_mri_001",
                    url="https://example.com/gbm_mri.jpg",
                    caption=(
                        "T1-weighted post-contrast MRI showing heterogeneously enhancing mass "
                        "with central necrosis"
                    ),
                    annotations=[
                        {
                            "x": 150,
                            "y": 100,
                            "width": 80,
                            "height": 90,
                            "label": "Enhancing tumor",
                            "finding_type": "abnormal",
                        },
                        {
                            "x": 170,
                            "y": 120,
                            "width": 40,
                            "height": 50,
                            "label": "Central necrosis",
                            "finding_type": "abnormal",
                        },
                    ],
                )
            ],
            related_entries=["brain_metastases_001", "meningioma_001"],
        ),
    ]


def seed_samples(store: KnowledgeStore) -> int:
    """Put the sample entries into the store. Returns how many were added."""
    entries = sample_entries()
    for entry in entries:
        store.put(entry)
    logger.info("Seeded %d sample entries", len(entries))
    return len(entries)

"""Shapes of article and case records produced by the external content fetcher."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from clinical_kb.models.entry import Difficulty


class ImageAnnotation(BaseModel):
    """A labelled region on an image."""

    id: int | None = None
    x: float
    y: float
    width: float
    height: float
    label: str = ""
    description: str = ""
    finding_type: Literal["normal", "abnormal", "variant"] | None = None


class ExternalImage(BaseModel):
    """An image as delivered by the content provider."""

    id: int
    image_url: str
    thumbnail_url: str | None = None
    caption: str = ""
    modality: str | None = None
    plane: str | None = None
    body_part: str | None = None
    pathology: str | None = None
    annotations: list[ImageAnnotation] = Field(default_factory=list)


class CaseStudy(BaseModel):
    """One imaging study within a case."""

    id: int
    modality: str
    body_part: str | None = None
    technique: str = ""
    findings: str = ""
    images: list[ExternalImage] = Field(default_factory=list)


class PatientData(BaseModel):
    """De-identified presentation details."""

    age: int | None = None
    sex: Literal["M", "F"] | None = None
    presentation: str = ""
    history: str = ""


class ExternalCase(BaseModel):
    """A teaching case, nested in an article or delivered standalone."""

    kind: Literal["case"] = "case"
    id: int
    title: str
    patient_data: PatientData = Field(default_factory=PatientData)
    studies: list[CaseStudy] = Field(default_factory=list)
    diagnosis: str
    discussion: str = ""
    differential_diagnosis: list[str] = Field(default_factory=list)
    teaching_points: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)
    system: str | None = None
    parent_article_id: int | None = None


class ExternalArticle(BaseModel):
    """A reference article with its images and cases."""

    kind: Literal["article"] = "article"
    id: int
    title: str
    slug: str | None = None
    public_url: str | None = None
    synopsis: str = ""
    body: str = ""
    system: str | None = None
    modality: list[str] = Field(default_factory=list)
    pathology: list[str] = Field(default_factory=list)
    images: list[ExternalImage] = Field(default_factory=list)
    cases: list[ExternalCase] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    views: int = Field(default=0, ge=0)
    likes: int = 0
    difficulty: Difficulty | None = None
    tags: list[str] = Field(default_factory=list)

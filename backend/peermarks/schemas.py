"""Request and response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from peermarks.models import ComparisonLevel


class WorkshopCreate(BaseModel):
    name: str
    comparison: ComparisonLevel | None = None


class WorkshopRead(BaseModel):
    id: int
    name: str
    comparison: ComparisonLevel
    created_at: datetime


class DimensionCreate(BaseModel):
    label: str
    weight: float = Field(default=1.0, ge=0)
    min_grade: float = 0.0
    max_grade: float = 100.0

    @model_validator(mode="after")
    def _check_range(self) -> "DimensionCreate":
        if self.max_grade <= self.min_grade:
            raise ValueError("max_grade must be greater than min_grade")
        return self


class DimensionRead(BaseModel):
    id: int
    workshop_id: int
    label: str
    weight: float
    min_grade: float
    max_grade: float


class SubmissionCreate(BaseModel):
    author_id: int
    title: str


class SubmissionRead(BaseModel):
    id: int
    workshop_id: int
    author_id: int
    title: str
    created_at: datetime


class DimensionGradeIn(BaseModel):
    dimension_id: int
    grade: float


class AssessmentCreate(BaseModel):
    reviewer_id: int
    weight: float = Field(default=1.0, ge=0)
    grades: list[DimensionGradeIn] = Field(min_length=1)


class AssessmentRead(BaseModel):
    id: int
    submission_id: int
    reviewer_id: int
    weight: float
    grading_grade: float | None
    grades: dict[int, float] = Field(default_factory=dict)


class WorkshopDetail(BaseModel):
    workshop: WorkshopRead
    dimensions: list[DimensionRead]
    submissions: list[SubmissionRead]


class EvaluationSummaryRead(BaseModel):
    workshop_id: int
    method: str
    batches: int
    skipped: int
    updated: int

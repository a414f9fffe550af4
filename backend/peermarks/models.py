"""SQLModel ORM models for PeerMarks."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Return timezone-aware UTC now timestamp."""
    return datetime.now(timezone.utc)


class ComparisonLevel(str, Enum):
    VERY_STRICT = "very_strict"
    STRICT = "strict"
    NORMAL = "normal"
    LAX = "lax"
    VERY_LAX = "very_lax"

    @property
    def factor(self) -> float:
        return _COMPARISON_FACTORS[self]


_COMPARISON_FACTORS = {
    ComparisonLevel.VERY_STRICT: 1.0,
    ComparisonLevel.STRICT: 3.0,
    ComparisonLevel.NORMAL: 5.0,
    ComparisonLevel.LAX: 7.0,
    ComparisonLevel.VERY_LAX: 9.0,
}


class Workshop(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    comparison: ComparisonLevel = Field(default=ComparisonLevel.NORMAL)
    created_at: datetime = Field(default_factory=utcnow)


class Dimension(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    workshop_id: int = Field(foreign_key="workshop.id", index=True)
    label: str
    weight: float = 1.0
    min_grade: float = 0.0
    max_grade: float = 100.0
    created_at: datetime = Field(default_factory=utcnow)


class Submission(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    workshop_id: int = Field(foreign_key="workshop.id", index=True)
    author_id: int = Field(index=True)
    title: str
    created_at: datetime = Field(default_factory=utcnow)


class Assessment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    submission_id: int = Field(foreign_key="submission.id", index=True)
    reviewer_id: int = Field(index=True)
    weight: float = 1.0
    grading_grade: Optional[float] = None
    grading_grade_updated_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)


class DimensionGrade(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    assessment_id: int = Field(foreign_key="assessment.id", index=True)
    dimension_id: int = Field(foreign_key="dimension.id", index=True)
    grade: float

"""Evaluation value types, collaborator interfaces and errors."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Optional, Protocol, Union


class EvaluationError(Exception):
    """Base class for grading-grade evaluation failures."""


class RubricConfigurationError(EvaluationError):
    """The rubric dimensions cannot be used to evaluate assessments."""


class MalformedBatchError(EvaluationError):
    """Assessments of one submission do not share the same dimensions."""


@dataclass(frozen=True)
class DimensionInfo:
    id: int
    weight: float
    min: float
    max: float
    variance: Optional[float] = None

    def with_variance(self, variance: Optional[float]) -> "DimensionInfo":
        return replace(self, variance=variance)


@dataclass(frozen=True)
class GradeRecord:
    """One dimension grade given in one assessment."""

    assessment_id: int
    assessment_weight: float
    reviewer_id: int
    grading_grade: Optional[float]
    submission_id: int
    dimension_id: int
    grade: float


@dataclass(frozen=True)
class Assessment:
    assessment_id: int
    weight: float
    reviewer_id: int
    submission_id: int
    grading_grade: Optional[float]
    dim_grades: Mapping[int, float] = field(default_factory=dict)

    def with_dim_grades(self, dim_grades: Mapping[int, float]) -> "Assessment":
        return replace(self, dim_grades=dict(dim_grades))


@dataclass(frozen=True)
class GradingGradeUpdate:
    assessment_id: int
    grading_grade: float


@dataclass
class EvaluationSummary:
    batches: int = 0
    skipped: int = 0
    updated: int = 0


Restriction = Union[None, int, Iterable[int]]


class GradingStrategy(Protocol):
    """Source of rubric dimensions and assessment grade records."""

    def get_dimensions_info(self) -> Mapping[int, DimensionInfo]:
        """Return the rubric dimensions keyed by dimension id."""

    def get_assessment_records(self, restrict: Restriction = None) -> Iterator[GradeRecord]:
        """Return grade records clustered by submission id."""


class GradingGradeSink(Protocol):
    """Persists recalculated grading grades."""

    def apply_updates(self, updates: list[GradingGradeUpdate]) -> int:
        """Store the new grading grades and return how many were applied."""

"""Grading grades by comparison with the best assessment.

Every assessment of a submission is compared with the assessment(s) closest to
the hypothetical average assessment. The further an assessment is from its
nearest best assessment, the lower the grading grade its reviewer receives.

Variance is computed with the weighted incremental algorithm from
D. H. D. West (1979), "Updating Mean and Variance Estimates: An Improved
Method", Communications of the ACM 22(9), 532-535.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Optional

from peermarks.evaluation.base import (
    Assessment,
    DimensionInfo,
    EvaluationSummary,
    GradeRecord,
    GradingGradeSink,
    GradingGradeUpdate,
    GradingStrategy,
    MalformedBatchError,
    Restriction,
    RubricConfigurationError,
)
from peermarks.evaluation.gradefloat import grade_floatval, grade_floats_different

logger = logging.getLogger(__name__)

DEFAULT_COMPARISON_FACTOR = 5.0
DEFAULT_VARIANCE_THRESHOLD = 0.01
MAX_GRADING_GRADE = 100.0


def group_batches(records: Iterable[GradeRecord]) -> Iterator[list[GradeRecord]]:
    """Split records clustered by submission into one batch per submission."""
    batch: list[GradeRecord] = []
    for record in records:
        if batch and record.submission_id != batch[-1].submission_id:
            yield batch
            batch = []
        batch.append(record)
    if batch:
        yield batch


def assemble_assessments(batch: Iterable[GradeRecord]) -> dict[int, Assessment]:
    """Collect the flat grade records into one assessment per assessment id."""
    headers: dict[int, GradeRecord] = {}
    dim_grades: dict[int, dict[int, float]] = {}
    for record in batch:
        if record.assessment_id not in headers:
            headers[record.assessment_id] = record
            dim_grades[record.assessment_id] = {}
        dim_grades[record.assessment_id][record.dimension_id] = record.grade

    return {
        assessment_id: Assessment(
            assessment_id=assessment_id,
            weight=header.assessment_weight,
            reviewer_id=header.reviewer_id,
            submission_id=header.submission_id,
            grading_grade=header.grading_grade,
            dim_grades=dim_grades[assessment_id],
        )
        for assessment_id, header in headers.items()
    }


def check_dimensions(dimensions: Mapping[int, DimensionInfo]) -> None:
    for dimension in dimensions.values():
        if dimension.max <= dimension.min:
            raise RubricConfigurationError(
                f"Dimension {dimension.id} has max grade {dimension.max} not above min grade {dimension.min}"
            )
        if dimension.weight < 0:
            raise RubricConfigurationError(f"Dimension {dimension.id} has negative weight {dimension.weight}")


def check_dimension_sets(assessments: Mapping[int, Assessment]) -> None:
    expected: Optional[set[int]] = None
    for assessment in assessments.values():
        if assessment.weight < 0:
            raise MalformedBatchError(
                f"Assessment {assessment.assessment_id} of submission {assessment.submission_id} "
                f"has negative weight {assessment.weight}"
            )
        current = set(assessment.dim_grades)
        if expected is None:
            expected = current
        elif current != expected:
            raise MalformedBatchError(
                f"Assessment {assessment.assessment_id} of submission {assessment.submission_id} "
                f"grades dimensions {sorted(current)}, expected {sorted(expected)}"
            )


def _dimension(dimensions: Mapping[int, DimensionInfo], dimension_id: int) -> DimensionInfo:
    try:
        return dimensions[dimension_id]
    except KeyError:
        raise RubricConfigurationError(f"Dimension {dimension_id} is not part of the rubric") from None


def normalize_grades(
    assessments: Mapping[int, Assessment], dimensions: Mapping[int, DimensionInfo]
) -> dict[int, Assessment]:
    """Rescale all dimension grades to the interval 0 - 100."""
    normalized: dict[int, Assessment] = {}
    for assessment_id, assessment in assessments.items():
        dim_grades: dict[int, float] = {}
        for dimension_id, grade in assessment.dim_grades.items():
            dimension = _dimension(dimensions, dimension_id)
            span = dimension.max - dimension.min
            if span <= 0:
                raise RubricConfigurationError(
                    f"Dimension {dimension_id} has max grade {dimension.max} not above min grade {dimension.min}"
                )
            dim_grades[dimension_id] = grade_floatval((grade - dimension.min) / span * 100)
        normalized[assessment_id] = assessment.with_dim_grades(dim_grades)
    return normalized


def average_assessment(assessments: Mapping[int, Assessment]) -> Optional[dict[int, float]]:
    """Return the weighted average dimension grades, or None if all weights are zero."""
    sum_weights = sum(assessment.weight for assessment in assessments.values())
    if sum_weights == 0:
        return None

    sum_dim_grades: dict[int, float] = {}
    for assessment in assessments.values():
        for dimension_id, grade in assessment.dim_grades.items():
            sum_dim_grades[dimension_id] = sum_dim_grades.get(dimension_id, 0.0) + grade * assessment.weight

    return {
        dimension_id: grade_floatval(total / sum_weights)
        for dimension_id, total in sum_dim_grades.items()
    }


def weighted_variance(assessments: Mapping[int, Assessment]) -> dict[int, Optional[float]]:
    """Return the weighted population variance of every dimension's grades.

    Zero-weight assessments do not take part. A dimension gets ``None`` when
    fewer than two assessments with a non-zero weight graded it.
    """
    first = next(iter(assessments.values()), None)
    if first is None:
        return {}

    variances: dict[int, Optional[float]] = {}
    for dimension_id in first.dim_grades:
        n = 0
        mean = 0.0
        s = 0.0
        sum_weight = 0.0
        for assessment in assessments.values():
            weight = assessment.weight
            if weight == 0:
                continue
            x = assessment.dim_grades[dimension_id]
            n += 1
            temp = weight + sum_weight
            q = x - mean
            r = q * weight / temp
            s += sum_weight * q * r
            mean += r
            sum_weight = temp

        if sum_weight > 0 and n > 1:
            variances[dimension_id] = s / sum_weight
        else:
            variances[dimension_id] = None
    return variances


def with_variances(
    dimensions: Mapping[int, DimensionInfo], variances: Mapping[int, Optional[float]]
) -> dict[int, DimensionInfo]:
    return {
        dimension_id: dimension.with_variance(variances.get(dimension_id))
        for dimension_id, dimension in dimensions.items()
    }


def assessments_distance(
    dim_grades: Mapping[int, float],
    referential: Mapping[int, float],
    dimensions: Mapping[int, DimensionInfo],
    comparison_factor: float = DEFAULT_COMPARISON_FACTOR,
    variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD,
) -> Optional[float]:
    """Measure how far normalized dimension grades are from referential ones.

    Dimensions whose variance is at or below ``variance_threshold`` and dimensions
    graded the same in both are left out. Returns the weighted average over the
    remaining dimensions, or None when no dimension is left.
    """
    distance = 0.0
    n = 0.0
    for dimension_id, grade in dim_grades.items():
        reference = referential[dimension_id]
        dimension = _dimension(dimensions, dimension_id)
        variance = dimension.variance

        # variances close to zero are too sensitive to small changes in the grades
        if variance is None or variance <= variance_threshold or grade == reference:
            continue
        delta = grade - reference
        relative_delta = delta ** 2 / (comparison_factor * variance)
        distance += abs(delta) * relative_delta * dimension.weight
        n += dimension.weight

    if n > 0:
        return grade_floatval(distance / n)
    return None


def _rank(distance: Optional[float]) -> float:
    # None means no measurable disagreement in any dimension
    return 0.0 if distance is None else distance


def best_assessment_ids(distances: Mapping[int, Optional[float]]) -> list[int]:
    """Return the ids of all assessments sharing the shortest distance."""
    if not distances:
        return []
    shortest = min(_rank(distance) for distance in distances.values())
    return [assessment_id for assessment_id, distance in distances.items() if _rank(distance) == shortest]


def grading_grade(distance: Optional[float]) -> float:
    # not clamped to 0 - 100
    return grade_floatval(MAX_GRADING_GRADE - _rank(distance))


def evaluate_batch(
    batch: Iterable[GradeRecord],
    dimensions: Mapping[int, DimensionInfo],
    comparison_factor: float = DEFAULT_COMPARISON_FACTOR,
    variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD,
) -> Optional[list[GradingGradeUpdate]]:
    """Compute the grading grades of all assessments of a single submission.

    Returns the updates for assessments whose grading grade changed, or None
    when the batch cannot be evaluated because all assessment weights are zero.
    """
    assessments = assemble_assessments(batch)
    if not assessments:
        return []
    check_dimension_sets(assessments)
    assessments = normalize_grades(assessments, dimensions)

    average = average_assessment(assessments)
    if average is None:
        return None

    dimensions = with_variances(dimensions, weighted_variance(assessments))

    def distance(dim_grades: Mapping[int, float], referential: Mapping[int, float]) -> Optional[float]:
        return assessments_distance(dim_grades, referential, dimensions, comparison_factor, variance_threshold)

    from_average = {
        assessment_id: distance(assessment.dim_grades, average)
        for assessment_id, assessment in assessments.items()
    }
    best_ids = best_assessment_ids(from_average)

    nearest: dict[int, Optional[float]] = {}
    for best_id in best_ids:
        best = assessments[best_id]
        for assessment_id, assessment in assessments.items():
            d = distance(assessment.dim_grades, best.dim_grades)
            if assessment_id not in nearest or _rank(d) < _rank(nearest[assessment_id]):
                nearest[assessment_id] = d

    updates: list[GradingGradeUpdate] = []
    for assessment_id, d in nearest.items():
        grade = grading_grade(d)
        if grade_floats_different(grade, assessments[assessment_id].grading_grade):
            updates.append(GradingGradeUpdate(assessment_id=assessment_id, grading_grade=grade))
    return updates


class BestAssessmentEvaluation:
    """Recalculates grading grades of a workshop by comparison with the best assessment."""

    name = "best"

    def __init__(
        self,
        strategy: GradingStrategy,
        sink: GradingGradeSink,
        comparison_factor: float = DEFAULT_COMPARISON_FACTOR,
        variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD,
    ) -> None:
        if comparison_factor <= 0:
            raise ValueError(f"Comparison factor must be positive, got {comparison_factor}")
        self.strategy = strategy
        self.sink = sink
        self.comparison_factor = comparison_factor
        self.variance_threshold = variance_threshold

    def update_grading_grades(self, restrict: Restriction = None) -> EvaluationSummary:
        """Recalculate grading grades, for all reviewers or only the restricted ones."""
        dimensions = dict(self.strategy.get_dimensions_info())
        try:
            check_dimensions(dimensions)
        except RubricConfigurationError:
            logger.exception("rubric cannot be used for grading grades")
            raise

        summary = EvaluationSummary()
        for batch in group_batches(self.strategy.get_assessment_records(restrict)):
            submission_id = batch[0].submission_id
            try:
                updates = evaluate_batch(batch, dimensions, self.comparison_factor, self.variance_threshold)
            except (RubricConfigurationError, MalformedBatchError):
                logger.exception("grading grade evaluation failed", extra={"submission_id": submission_id})
                raise

            summary.batches += 1
            if updates is None:
                summary.skipped += 1
                logger.info(
                    "skipping submission without weighted assessments",
                    extra={"submission_id": submission_id},
                )
                continue
            if updates:
                summary.updated += self.sink.apply_updates(updates)

        logger.info(
            "grading grades recalculated",
            extra={"batches": summary.batches, "skipped": summary.skipped, "updated": summary.updated},
        )
        return summary

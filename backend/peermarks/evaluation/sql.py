"""Database backed grading strategy and grading grade sink."""

from __future__ import annotations

from collections.abc import Iterator

from sqlmodel import Session, col, select

from peermarks.evaluation.base import DimensionInfo, EvaluationError, GradeRecord, GradingGradeUpdate, Restriction
from peermarks.models import Assessment, Dimension, DimensionGrade, Submission, utcnow


def _reviewer_ids(restrict: Restriction) -> list[int] | None:
    if restrict is None:
        return None
    if isinstance(restrict, int):
        return [restrict]
    return list(restrict)


class SqlGradingStrategy:
    """Reads the rubric and assessments of one workshop."""

    def __init__(self, session: Session, workshop_id: int) -> None:
        self.session = session
        self.workshop_id = workshop_id

    def get_dimensions_info(self) -> dict[int, DimensionInfo]:
        rows = self.session.exec(
            select(Dimension).where(Dimension.workshop_id == self.workshop_id).order_by(Dimension.id)
        ).all()
        return {
            row.id: DimensionInfo(id=row.id, weight=row.weight, min=row.min_grade, max=row.max_grade)
            for row in rows
        }

    def get_assessment_records(self, restrict: Restriction = None) -> Iterator[GradeRecord]:
        reviewer_ids = _reviewer_ids(restrict)
        if reviewer_ids is not None and not reviewer_ids:
            return

        statement = (
            select(Assessment, DimensionGrade)
            .join(Submission, Submission.id == Assessment.submission_id)
            .join(DimensionGrade, DimensionGrade.assessment_id == Assessment.id)
            .where(Submission.workshop_id == self.workshop_id)
            .order_by(Assessment.submission_id, Assessment.id, DimensionGrade.dimension_id)
        )
        if reviewer_ids is not None:
            statement = statement.where(col(Assessment.reviewer_id).in_(reviewer_ids))

        # read up front, the sink commits on the same session between batches
        records = [
            GradeRecord(
                assessment_id=assessment.id,
                assessment_weight=assessment.weight,
                reviewer_id=assessment.reviewer_id,
                grading_grade=assessment.grading_grade,
                submission_id=assessment.submission_id,
                dimension_id=dimension_grade.dimension_id,
                grade=dimension_grade.grade,
            )
            for assessment, dimension_grade in self.session.exec(statement).all()
        ]
        yield from records


class SqlGradingGradeSink:
    """Writes recalculated grading grades back to the assessment rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def apply_updates(self, updates: list[GradingGradeUpdate]) -> int:
        updated_at = utcnow()
        for update in updates:
            assessment = self.session.get(Assessment, update.assessment_id)
            if not assessment:
                raise EvaluationError(f"Assessment {update.assessment_id} not found")
            assessment.grading_grade = update.grading_grade
            assessment.grading_grade_updated_at = updated_at
            self.session.add(assessment)
        self.session.commit()
        return len(updates)

"""Workshop, rubric, submission and assessment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, col, select

from peermarks.db import get_session
from peermarks.models import Assessment, Dimension, DimensionGrade, Submission, Workshop
from peermarks.schemas import (
    AssessmentCreate,
    AssessmentRead,
    DimensionCreate,
    DimensionRead,
    SubmissionCreate,
    SubmissionRead,
    WorkshopCreate,
    WorkshopDetail,
    WorkshopRead,
)
from peermarks.settings import settings

router = APIRouter(tags=["workshops"])


def _get_workshop(workshop_id: int, session: Session) -> Workshop:
    workshop = session.get(Workshop, workshop_id)
    if not workshop:
        raise HTTPException(status_code=404, detail="Workshop not found")
    return workshop


def _workshop_read(workshop: Workshop) -> WorkshopRead:
    return WorkshopRead(id=workshop.id, name=workshop.name, comparison=workshop.comparison, created_at=workshop.created_at)


def _dimension_read(row: Dimension) -> DimensionRead:
    return DimensionRead(
        id=row.id,
        workshop_id=row.workshop_id,
        label=row.label,
        weight=row.weight,
        min_grade=row.min_grade,
        max_grade=row.max_grade,
    )


def _submission_read(row: Submission) -> SubmissionRead:
    return SubmissionRead(id=row.id, workshop_id=row.workshop_id, author_id=row.author_id, title=row.title, created_at=row.created_at)


def _assessment_reads(assessments: list[Assessment], session: Session) -> list[AssessmentRead]:
    if not assessments:
        return []
    ids = [a.id for a in assessments]
    grades = session.exec(select(DimensionGrade).where(col(DimensionGrade.assessment_id).in_(ids))).all()
    by_assessment: dict[int, dict[int, float]] = {a.id: {} for a in assessments}
    for grade in grades:
        by_assessment[grade.assessment_id][grade.dimension_id] = grade.grade
    return [
        AssessmentRead(
            id=a.id,
            submission_id=a.submission_id,
            reviewer_id=a.reviewer_id,
            weight=a.weight,
            grading_grade=a.grading_grade,
            grades=by_assessment[a.id],
        )
        for a in assessments
    ]


@router.post("/workshops", response_model=WorkshopRead, status_code=status.HTTP_201_CREATED)
def create_workshop(payload: WorkshopCreate, session: Session = Depends(get_session)) -> WorkshopRead:
    workshop = Workshop(name=payload.name, comparison=payload.comparison or settings.default_comparison)
    session.add(workshop)
    session.commit()
    session.refresh(workshop)
    return _workshop_read(workshop)


@router.get("/workshops", response_model=list[WorkshopRead])
def list_workshops(session: Session = Depends(get_session)) -> list[WorkshopRead]:
    workshops = session.exec(select(Workshop).order_by(Workshop.id)).all()
    return [_workshop_read(w) for w in workshops]


@router.get("/workshops/{workshop_id}", response_model=WorkshopDetail)
def get_workshop(workshop_id: int, session: Session = Depends(get_session)) -> WorkshopDetail:
    workshop = _get_workshop(workshop_id, session)
    dimensions = session.exec(select(Dimension).where(Dimension.workshop_id == workshop_id).order_by(Dimension.id)).all()
    submissions = session.exec(select(Submission).where(Submission.workshop_id == workshop_id).order_by(Submission.id)).all()
    return WorkshopDetail(
        workshop=_workshop_read(workshop),
        dimensions=[_dimension_read(d) for d in dimensions],
        submissions=[_submission_read(s) for s in submissions],
    )


@router.post("/workshops/{workshop_id}/dimensions", response_model=DimensionRead, status_code=status.HTTP_201_CREATED)
def create_dimension(workshop_id: int, payload: DimensionCreate, session: Session = Depends(get_session)) -> DimensionRead:
    _get_workshop(workshop_id, session)
    assessed = session.exec(
        select(Assessment.id)
        .join(Submission, Submission.id == Assessment.submission_id)
        .where(Submission.workshop_id == workshop_id)
    ).first()
    if assessed is not None:
        raise HTTPException(status_code=409, detail="Rubric cannot change once submissions have been assessed")
    dimension = Dimension(workshop_id=workshop_id, **payload.model_dump())
    session.add(dimension)
    session.commit()
    session.refresh(dimension)
    return _dimension_read(dimension)


@router.post("/workshops/{workshop_id}/submissions", response_model=SubmissionRead, status_code=status.HTTP_201_CREATED)
def create_submission(workshop_id: int, payload: SubmissionCreate, session: Session = Depends(get_session)) -> SubmissionRead:
    _get_workshop(workshop_id, session)
    submission = Submission(workshop_id=workshop_id, author_id=payload.author_id, title=payload.title)
    session.add(submission)
    session.commit()
    session.refresh(submission)
    return _submission_read(submission)


@router.post("/submissions/{submission_id}/assessments", response_model=AssessmentRead, status_code=status.HTTP_201_CREATED)
def create_assessment(submission_id: int, payload: AssessmentCreate, session: Session = Depends(get_session)) -> AssessmentRead:
    submission = session.get(Submission, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    dimension_ids = set(
        session.exec(select(Dimension.id).where(Dimension.workshop_id == submission.workshop_id)).all()
    )
    graded_ids = [g.dimension_id for g in payload.grades]
    if len(graded_ids) != len(set(graded_ids)):
        raise HTTPException(status_code=400, detail="Each dimension may be graded only once")
    if set(graded_ids) != dimension_ids:
        raise HTTPException(status_code=400, detail="Assessment must grade every rubric dimension of the workshop")

    assessment = Assessment(submission_id=submission_id, reviewer_id=payload.reviewer_id, weight=payload.weight)
    session.add(assessment)
    session.flush()
    for grade in payload.grades:
        session.add(DimensionGrade(assessment_id=assessment.id, dimension_id=grade.dimension_id, grade=grade.grade))
    session.commit()
    session.refresh(assessment)
    return _assessment_reads([assessment], session)[0]


@router.get("/workshops/{workshop_id}/assessments", response_model=list[AssessmentRead])
def list_assessments(workshop_id: int, session: Session = Depends(get_session)) -> list[AssessmentRead]:
    _get_workshop(workshop_id, session)
    assessments = session.exec(
        select(Assessment)
        .join(Submission, Submission.id == Assessment.submission_id)
        .where(Submission.workshop_id == workshop_id)
        .order_by(Assessment.submission_id, Assessment.id)
    ).all()
    return _assessment_reads(list(assessments), session)

"""Grading grade recalculation endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from peermarks.db import get_session
from peermarks.evaluation.base import EvaluationError
from peermarks.evaluation.factory import get_evaluator
from peermarks.evaluation.sql import SqlGradingGradeSink, SqlGradingStrategy
from peermarks.models import Workshop
from peermarks.schemas import EvaluationSummaryRead
from peermarks.settings import settings

router = APIRouter(tags=["evaluation"])
logger = logging.getLogger(__name__)


@router.post("/workshops/{workshop_id}/grading-grades", response_model=EvaluationSummaryRead)
def recalculate_grading_grades(
    workshop_id: int,
    reviewer_id: list[int] | None = Query(default=None),
    method: str = Query(default="best"),
    session: Session = Depends(get_session),
) -> EvaluationSummaryRead:
    workshop = session.get(Workshop, workshop_id)
    if not workshop:
        raise HTTPException(status_code=404, detail="Workshop not found")

    try:
        evaluator = get_evaluator(
            method,
            SqlGradingStrategy(session, workshop_id),
            SqlGradingGradeSink(session),
            comparison_factor=workshop.comparison.factor,
            variance_threshold=settings.variance_threshold,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        summary = evaluator.update_grading_grades(reviewer_id)
    except EvaluationError as exc:
        session.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info(
        "grading grades recalculated for workshop",
        extra={"workshop_id": workshop_id, "method": evaluator.name, "updated": summary.updated},
    )
    return EvaluationSummaryRead(
        workshop_id=workshop_id,
        method=evaluator.name,
        batches=summary.batches,
        skipped=summary.skipped,
        updated=summary.updated,
    )

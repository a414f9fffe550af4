"""Evaluator factory/dispatcher."""

from peermarks.evaluation.base import GradingGradeSink, GradingStrategy
from peermarks.evaluation.best import DEFAULT_COMPARISON_FACTOR, DEFAULT_VARIANCE_THRESHOLD, BestAssessmentEvaluation


def get_evaluator(
    name: str,
    strategy: GradingStrategy,
    sink: GradingGradeSink,
    comparison_factor: float = DEFAULT_COMPARISON_FACTOR,
    variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD,
) -> BestAssessmentEvaluation:
    method = name.lower()
    if method == "best":
        return BestAssessmentEvaluation(strategy, sink, comparison_factor, variance_threshold)
    raise ValueError(f"Unknown evaluation method '{name}'. Use one of: best")

from __future__ import annotations

import pytest

from peermarks.evaluation.gradefloat import grade_floats_different, grade_floatval


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, None),
        (66.666666666, 66.66667),
        (1.000005, 1.00001),
        (-1.000005, -1.00001),
        (100, 100.0),
    ],
)
def test_grade_floatval_rounds_half_away_from_zero(value, expected) -> None:
    assert grade_floatval(value) == expected


def test_grade_floatval_rejects_non_finite_values() -> None:
    with pytest.raises(ValueError):
        grade_floatval(float("nan"))


@pytest.mark.parametrize(
    ("first", "second", "different"),
    [
        (None, None, False),
        (None, 0.0, True),
        (50.0, None, True),
        (72.571428, 72.57143, False),
        (72.57143, 72.57144, True),
        (100.0, 99.999999, False),
    ],
)
def test_grade_floats_different(first, second, different) -> None:
    assert grade_floats_different(first, second) is different

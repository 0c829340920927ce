from __future__ import annotations

import math

import pytest

from denoise_sweep.errors import InvalidRange
from denoise_sweep.lambdas import generate


def test_generate_matches_reference_values() -> None:
    values = generate(0.001, 0.08, 5)

    expected = [0.0010000000, 0.0029906976, 0.0089442719, 0.0267496122, 0.0800000000]
    assert values == pytest.approx(expected, abs=1e-10)


@pytest.mark.parametrize(
    ("start", "end", "steps"),
    [(0.001, 0.08, 5), (1e-6, 1e3, 40), (0.5, 0.5000001, 3), (2.0, 3.0, 2)],
)
def test_generate_spans_range_geometrically(start: float, end: float, steps: int) -> None:
    values = generate(start, end, steps)

    assert len(values) == steps
    assert values[0] == start
    assert values[-1] == pytest.approx(end, rel=1e-12)
    assert all(b > a for a, b in zip(values, values[1:]))
    ratios = [b / a for a, b in zip(values, values[1:])]
    assert ratios == pytest.approx([ratios[0]] * len(ratios), rel=1e-9)


def test_generate_single_step_is_start_only() -> None:
    assert generate(0.3, 7.0, 1) == (0.3,)
    assert generate(0.3, 0.3, 1) == (0.3,)


def test_generate_is_deterministic() -> None:
    assert generate(0.01, 1.0, 7) == generate(0.01, 1.0, 7)


@pytest.mark.parametrize(
    ("start", "end", "steps"),
    [
        (0.0, 1.0, 3),
        (-0.1, 1.0, 3),
        (1.0, 0.5, 3),
        (0.1, 1.0, 0),
        (0.1, 1.0, -2),
        (0.1, 0.1, 4),
        (math.nan, 1.0, 3),
        (0.1, math.inf, 3),
        (0.1, 1.0, 2.5),
    ],
)
def test_generate_rejects_invalid_ranges(start: float, end: float, steps: int) -> None:
    with pytest.raises(InvalidRange):
        generate(start, end, steps)


def test_invalid_range_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        generate(1.0, 0.1, 3)

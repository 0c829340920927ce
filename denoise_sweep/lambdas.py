"""Geometric λ sequence generation."""

from __future__ import annotations

import math

from .errors import InvalidRange


def generate(start: float, end: float, steps: int) -> tuple[float, ...]:
    """Return ``steps`` λ values from ``start`` to ``end`` with a constant ratio.

    Value ``i`` is ``start * (end / start) ** (i / (steps - 1))``, so the first
    element is exactly ``start`` and the last exactly ``end``.
    """
    _check_range(start, end, steps)
    start = float(start)
    end = float(end)
    if steps == 1:
        return (start,)
    ratio = end / start
    last = steps - 1
    values = [start]
    for i in range(1, last):
        values.append(start * ratio ** (i / last))
    values.append(end)
    for prev, current in zip(values, values[1:]):
        if not current > prev:
            raise InvalidRange(
                f"range [{start}, {end}] is too narrow for {steps} distinct steps"
            )
    return tuple(values)


def _check_range(start: float, end: float, steps: int) -> None:
    if isinstance(steps, bool) or not isinstance(steps, int):
        raise InvalidRange(f"steps must be an integer, got {steps!r}")
    if steps < 1:
        raise InvalidRange(f"steps must be at least 1, got {steps}")
    try:
        start_f = float(start)
        end_f = float(end)
    except (TypeError, ValueError) as exc:
        raise InvalidRange(f"λ bounds must be numbers: {exc}") from exc
    if not (math.isfinite(start_f) and math.isfinite(end_f)):
        raise InvalidRange("λ bounds must be finite")
    if start_f <= 0:
        raise InvalidRange(f"start λ must be positive, got {start_f}")
    if end_f < start_f:
        raise InvalidRange(f"end λ ({end_f}) must not be smaller than start λ ({start_f})")
    if steps > 1 and end_f == start_f:
        raise InvalidRange("start and end λ must differ when steps > 1")

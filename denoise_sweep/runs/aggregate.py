"""Fan-in of solve outcomes and per-λ output writing."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Sequence

import numpy as np

from ..imaging import save_image
from ..solvers.base import SolveOutcome

logger = logging.getLogger(__name__)

DEFAULT_PRECISION = 10

ImageWriter = Callable[[np.ndarray, Path], Path]


@dataclass(frozen=True)
class SweepFailure:
    lambda_value: float
    stage: str
    reason: str


@dataclass(frozen=True)
class SweepResult:
    outcomes: tuple[SolveOutcome, ...]

    @property
    def lambdas(self) -> list[float]:
        return [outcome.lambda_value for outcome in self.outcomes]

    def get(self, lambda_value: float) -> SolveOutcome | None:
        for outcome in self.outcomes:
            if outcome.lambda_value == lambda_value:
                return outcome
        return None

    @property
    def succeeded(self) -> list[SolveOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failures(self) -> list[SweepFailure]:
        return [
            SweepFailure(outcome.lambda_value, "solve", outcome.error or "no image produced")
            for outcome in self.outcomes
            if not outcome.ok
        ]


@dataclass
class WriteReport:
    labels: dict[float, str]
    written: dict[float, Path] = field(default_factory=dict)
    failures: list[SweepFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def collect(outcomes: Iterable[SolveOutcome]) -> SweepResult:
    """Order outcomes by ascending λ, whatever order they completed in."""
    ordered = sorted(outcomes, key=lambda outcome: outcome.lambda_value)
    for prev, current in zip(ordered, ordered[1:]):
        if prev.lambda_value == current.lambda_value:
            raise ValueError(f"duplicate outcome for λ={current.lambda_value}")
    return SweepResult(outcomes=tuple(ordered))


def lambda_labels(values: Sequence[float], precision: int = DEFAULT_PRECISION) -> dict[float, str]:
    """Fixed-width decimal labels whose lexical order matches numeric order.

    Precision grows past ``precision`` to show the smallest value and to
    resolve the smallest gap. Every finite float has a finite decimal
    expansion, so distinct values always end up with distinct labels.
    """
    distinct = sorted(set(float(value) for value in values))
    if not distinct:
        return {}
    if distinct[0] < 0 or not math.isfinite(distinct[-1]):
        raise ValueError("λ labels need finite, non-negative values")
    digits = max(precision, _digits_for_scale(distinct))
    while True:
        width = len(f"{distinct[-1]:.{digits}f}")
        labels = [f"{value:0{width}.{digits}f}" for value in distinct]
        if len(set(labels)) == len(labels):
            return dict(zip(distinct, labels))
        digits += 1


def _digits_for_scale(distinct: Sequence[float]) -> int:
    # Enough decimals to show the smallest value and the smallest gap.
    scales = [high - low for low, high in zip(distinct, distinct[1:])]
    scales.append(distinct[0])
    positive = [scale for scale in scales if scale > 0.0]
    if not positive:
        return 0
    return max(0, -math.floor(math.log10(min(positive))) + 1)


def output_filename(stem: str, label: str, suffix: str = ".png") -> str:
    return f"{stem}_lambda_{label}{suffix}"


def write_outputs(
    result: SweepResult,
    output_dir: Path,
    stem: str,
    writer: ImageWriter = save_image,
    suffix: str = ".png",
) -> WriteReport:
    """Write every succeeded outcome; failed solves and writes are reported, not raised."""
    report = WriteReport(labels=lambda_labels(result.lambdas))
    report.failures.extend(result.failures)
    for outcome in result.succeeded:
        label = report.labels[outcome.lambda_value]
        path = output_dir / output_filename(stem, label, suffix)
        try:
            written = writer(outcome.image, path)
        except Exception as exc:
            logger.warning("could not write λ=%s: %s", label, exc)
            report.failures.append(SweepFailure(outcome.lambda_value, "write", f"{type(exc).__name__}: {exc}"))
            continue
        report.written[outcome.lambda_value] = written
    report.failures.sort(key=lambda failure: failure.lambda_value)
    return report

"""Bounded fan-out of one solve per λ, joined before returning."""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Sequence

import numpy as np

from .errors import InvalidConcurrencyBound, InvalidSweepConfig
from .solvers.base import SolveOutcome, SolveRequest, Solver
from .utils import available_parallelism

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[SolveOutcome], None]


def resolve_max_workers(max_workers: int | None) -> int:
    """Validate an explicit bound, or fall back to the host's parallelism."""
    if max_workers is None:
        return available_parallelism()
    if isinstance(max_workers, bool) or not isinstance(max_workers, int):
        raise InvalidConcurrencyBound(f"worker bound must be an integer, got {max_workers!r}")
    if max_workers < 1:
        raise InvalidConcurrencyBound(f"worker bound must be positive, got {max_workers}")
    return max_workers


def check_iteration_limits(max_iterations: int, convergence_threshold: float) -> None:
    if isinstance(max_iterations, bool) or not isinstance(max_iterations, int) or max_iterations < 1:
        raise InvalidSweepConfig(f"max iterations must be a positive integer, got {max_iterations!r}")
    try:
        threshold = float(convergence_threshold)
    except (TypeError, ValueError) as exc:
        raise InvalidSweepConfig(f"convergence threshold must be a number: {exc}") from exc
    if not math.isfinite(threshold) or threshold < 0:
        raise InvalidSweepConfig(f"convergence threshold must be finite and >= 0, got {convergence_threshold!r}")


def freeze(image: np.ndarray) -> np.ndarray:
    """Read-only view so no unit can write into the shared input."""
    view = image.view()
    view.flags.writeable = False
    return view


def dispatch(
    lambdas: Sequence[float],
    image: np.ndarray,
    solver: Solver,
    *,
    max_iterations: int,
    convergence_threshold: float,
    max_workers: int | None = None,
    on_outcome: OutcomeCallback | None = None,
) -> list[SolveOutcome]:
    """Run ``solver`` once per λ with at most ``max_workers`` solves in flight.

    Returns one outcome per λ in completion order. Failures inside a unit are
    captured in its outcome and errors from ``on_outcome`` are logged; only
    invalid configuration raises.
    """
    bound = resolve_max_workers(max_workers)
    check_iteration_limits(max_iterations, convergence_threshold)
    shared = freeze(image)
    requests = [
        SolveRequest(
            image=shared,
            lambda_value=float(value),
            max_iterations=max_iterations,
            convergence_threshold=float(convergence_threshold),
        )
        for value in lambdas
    ]
    bound = min(bound, max(1, len(requests)))
    logger.info("dispatching %d solve(s) via %s with %d worker(s)", len(requests), solver.name, bound)

    outcomes: list[SolveOutcome] = []

    def record(outcome: SolveOutcome) -> None:
        outcomes.append(outcome)
        if outcome.ok:
            logger.debug(
                "λ=%.10f finished after %d iteration(s), converged=%s",
                outcome.lambda_value,
                outcome.iterations,
                outcome.converged,
            )
        else:
            logger.warning("λ=%.10f failed: %s", outcome.lambda_value, outcome.error)
        if on_outcome is not None:
            try:
                on_outcome(outcome)
            except Exception:
                logger.exception("outcome callback failed for λ=%.10f", outcome.lambda_value)

    if bound <= 1:
        for request in requests:
            record(_run_unit(solver, request))
        return outcomes

    with ThreadPoolExecutor(max_workers=bound, thread_name_prefix="denoise-sweep") as pool:
        future_map = {pool.submit(_run_unit, solver, request): request for request in requests}
        for future in as_completed(future_map):
            request = future_map[future]
            try:
                outcome = future.result()
            except Exception as exc:
                outcome = SolveOutcome.failed(request.lambda_value, exc)
            record(outcome)
    return outcomes


def _run_unit(solver: Solver, request: SolveRequest) -> SolveOutcome:
    started = time.monotonic()
    try:
        outcome = solver.solve(request)
    except Exception as exc:
        return SolveOutcome.failed(request.lambda_value, exc, max(time.monotonic() - started, 0.0))
    if outcome.lambda_value != request.lambda_value:
        return SolveOutcome.failed(
            request.lambda_value,
            f"solver returned outcome for λ={outcome.lambda_value}",
            max(time.monotonic() - started, 0.0),
        )
    return outcome

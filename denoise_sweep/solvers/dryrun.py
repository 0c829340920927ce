"""Dry-run solver (offline, deterministic)."""

from __future__ import annotations

import time

import numpy as np

from ..errors import SolverError
from .base import SolveOutcome, SolveRequest, iterate_to_convergence


class DryRunSolver:
    """Halves a λ-scaled change metric every step and returns the input unchanged."""

    name = "dryrun"

    def __init__(self, decay: float = 0.5) -> None:
        if not 0.0 < decay < 1.0:
            raise ValueError("decay must be in (0, 1)")
        self.decay = decay

    def solve(self, request: SolveRequest) -> SolveOutcome:
        start = time.monotonic()
        if not isinstance(request.image, np.ndarray) or request.image.size == 0:
            raise SolverError("dryrun needs a non-empty ndarray image")
        decay = self.decay

        def step(change: float) -> tuple[float, float]:
            nxt = change * decay
            return nxt, nxt

        result = iterate_to_convergence(
            float(request.lambda_value),
            step,
            request.max_iterations,
            request.convergence_threshold,
        )
        image = request.image.copy()
        image.flags.writeable = False
        return SolveOutcome(
            lambda_value=request.lambda_value,
            image=image,
            iterations=result.iterations,
            converged=result.converged,
            elapsed_s=max(time.monotonic() - start, 0.0),
        )

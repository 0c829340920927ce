from __future__ import annotations

import numpy as np
import pytest

from denoise_sweep.errors import SolverError
from denoise_sweep.solvers.base import SolveRequest
from denoise_sweep.solvers.dryrun import DryRunSolver


def _request(lam: float, max_iterations: int, threshold: float) -> SolveRequest:
    return SolveRequest(
        image=np.full((4, 4, 3), 0.25),
        lambda_value=lam,
        max_iterations=max_iterations,
        convergence_threshold=threshold,
    )


def test_dryrun_converges_after_predictable_iterations() -> None:
    outcome = DryRunSolver().solve(_request(1.0, 100, 0.1))

    assert outcome.converged is True
    assert outcome.iterations == 4
    assert np.array_equal(outcome.image, np.full((4, 4, 3), 0.25))


def test_dryrun_reports_limit() -> None:
    outcome = DryRunSolver().solve(_request(1.0, 3, 0.1))

    assert outcome.converged is False
    assert outcome.iterations == 3


def test_dryrun_convergence_on_last_iteration_counts() -> None:
    outcome = DryRunSolver().solve(_request(1.0, 4, 0.0625))

    assert outcome.converged is True
    assert outcome.iterations == 4


def test_dryrun_never_converges_at_tight_threshold() -> None:
    outcome = DryRunSolver(decay=0.999).solve(_request(1.0, 1000, 1e-9))

    assert outcome.converged is False
    assert outcome.iterations == 1000


def test_dryrun_output_is_private_copy() -> None:
    request = _request(0.5, 10, 0.1)
    outcome = DryRunSolver().solve(request)

    assert outcome.image is not request.image
    assert outcome.image.flags.writeable is False


def test_dryrun_rejects_empty_image() -> None:
    request = SolveRequest(image=np.zeros((0, 0)), lambda_value=0.1, max_iterations=5, convergence_threshold=0.1)
    with pytest.raises(SolverError):
        DryRunSolver().solve(request)

"""Solver registry."""

from __future__ import annotations

from .base import SolverRegistry
from .chambolle_pock import ChambollePockSolver
from .dryrun import DryRunSolver

DEFAULT_SOLVER = ChambollePockSolver.name


def default_registry() -> SolverRegistry:
    return SolverRegistry(
        [
            ChambollePockSolver(),
            DryRunSolver(),
        ]
    )

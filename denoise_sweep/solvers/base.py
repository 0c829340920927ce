"""Solver base classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Protocol, TypeVar

import numpy as np

StateT = TypeVar("StateT")


@dataclass(frozen=True)
class SolveRequest:
    image: np.ndarray
    lambda_value: float
    max_iterations: int
    convergence_threshold: float


@dataclass(frozen=True)
class SolveOutcome:
    lambda_value: float
    image: np.ndarray | None
    iterations: int
    converged: bool
    error: str | None = None
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.image is not None

    @classmethod
    def failed(cls, lambda_value: float, error: BaseException | str, elapsed_s: float = 0.0) -> "SolveOutcome":
        reason = error if isinstance(error, str) else f"{type(error).__name__}: {error}"
        return cls(
            lambda_value=lambda_value,
            image=None,
            iterations=0,
            converged=False,
            error=reason,
            elapsed_s=elapsed_s,
        )


@dataclass
class IterationResult(Generic[StateT]):
    state: StateT
    iterations: int
    converged: bool
    last_change: float | None


class Solver(Protocol):
    name: str

    def solve(self, request: SolveRequest) -> SolveOutcome:
        ...


def iterate_to_convergence(
    state: StateT,
    step: Callable[[StateT], tuple[StateT, float]],
    max_iterations: int,
    convergence_threshold: float,
) -> IterationResult[StateT]:
    """Advance ``state`` until the change metric drops to the threshold.

    ``step`` returns the next state and its change relative to the previous
    one. Convergence is checked before the iteration limit, so a run that
    converges on its last permitted step reports ``converged=True``.
    """
    change: float | None = None
    for iteration in range(1, max_iterations + 1):
        state, change = step(state)
        if change <= convergence_threshold:
            return IterationResult(state, iteration, True, change)
    return IterationResult(state, max_iterations, False, change)


class SolverRegistry:
    def __init__(self, solvers: Iterable[Solver]) -> None:
        self._solvers = {solver.name: solver for solver in solvers}

    def get(self, name: str) -> Solver | None:
        return self._solvers.get(name)

    def list(self) -> list[str]:
        return sorted(self._solvers.keys())

"""Sweep configuration and environment defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .dispatch import check_iteration_limits, resolve_max_workers
from .errors import InvalidSweepConfig
from .lambdas import generate
from .solvers import DEFAULT_SOLVER
from .utils import getenv_int, getenv_str

ENV_WORKERS = "DENOISE_SWEEP_WORKERS"
ENV_SOLVER = "DENOISE_SWEEP_SOLVER"
ENV_LOG_LEVEL = "DENOISE_SWEEP_LOG_LEVEL"


@dataclass
class SweepConfig:
    input_path: Path
    output_dir: Path
    start_lambda: float
    end_lambda: float
    steps: int
    max_iterations: int
    convergence_threshold: float
    max_workers: int | None = None
    solver: str = DEFAULT_SOLVER
    events_path: Path | None = None
    log_level: str | None = None
    create_output_dir: bool = False

    @property
    def resolved_events_path(self) -> Path:
        return self.events_path or self.output_dir / "events.jsonl"

    def lambdas(self) -> tuple[float, ...]:
        return generate(self.start_lambda, self.end_lambda, self.steps)

    def validate(self, solver_names: Iterable[str] | None = None) -> tuple[float, ...]:
        """Check every value before any work starts; returns the λ sequence."""
        values = self.lambdas()
        check_iteration_limits(self.max_iterations, self.convergence_threshold)
        if self.max_workers is not None:
            resolve_max_workers(self.max_workers)
        if solver_names is not None:
            names = list(solver_names)
            if self.solver not in names:
                raise InvalidSweepConfig(f"unknown solver {self.solver!r} (available: {', '.join(names)})")
        if not self.input_path.is_file():
            raise InvalidSweepConfig(f"input image {self.input_path} must be an existing file")
        if not self.output_dir.is_dir():
            if self.create_output_dir and not self.output_dir.exists():
                self.output_dir.mkdir(parents=True, exist_ok=True)
            else:
                raise InvalidSweepConfig(f"output folder {self.output_dir} must be an existing directory")
        return values

    def parameters(self) -> dict[str, Any]:
        return {
            "start_lambda": self.start_lambda,
            "end_lambda": self.end_lambda,
            "steps": self.steps,
            "max_iterations": self.max_iterations,
            "convergence_threshold": self.convergence_threshold,
            "max_workers": self.max_workers,
            "solver": self.solver,
        }


def env_defaults() -> dict[str, Any]:
    return {
        "max_workers": getenv_int(ENV_WORKERS),
        "solver": getenv_str(ENV_SOLVER, DEFAULT_SOLVER),
        "log_level": getenv_str(ENV_LOG_LEVEL, "INFO"),
    }

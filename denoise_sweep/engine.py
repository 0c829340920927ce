"""Core sweep engine orchestration."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .config import SweepConfig
from .dispatch import dispatch
from .errors import InvalidSweepConfig
from .imaging import load_image, save_image
from .runs.aggregate import ImageWriter, SweepResult, WriteReport, collect, write_outputs
from .runs.events import EventWriter
from .runs.summary import SweepSummary, summary_rows, write_summary
from .solvers import default_registry
from .solvers.base import SolveOutcome, SolverRegistry
from .utils import now_utc_iso

logger = logging.getLogger(__name__)


@dataclass
class SweepRun:
    sweep_id: str
    result: SweepResult
    report: WriteReport
    summary_path: Path
    elapsed_s: float

    @property
    def ok(self) -> bool:
        return self.report.ok


class SweepEngine:
    def __init__(
        self,
        config: SweepConfig,
        solver_registry: SolverRegistry | None = None,
        image_writer: ImageWriter = save_image,
        sweep_id: str | None = None,
    ) -> None:
        self.config = config
        self.solvers = solver_registry or default_registry()
        self.image_writer = image_writer
        self.sweep_id = sweep_id or uuid.uuid4().hex[:12]
        self.events = EventWriter(config.resolved_events_path, self.sweep_id)
        self.summary_path = config.output_dir / "summary.json"

    def run(self, on_outcome: Callable[[SolveOutcome], None] | None = None) -> SweepRun:
        """Validate, decode the input once, solve every λ, then write outputs.

        Configuration and decode errors raise before any solve starts. Per-run
        failures end up in ``SweepRun.report.failures``.
        """
        config = self.config
        lambdas = config.validate(self.solvers.list())
        solver = self.solvers.get(config.solver)
        if not solver:
            raise InvalidSweepConfig(f"No solver available for {config.solver}")
        image = load_image(config.input_path)

        started_at = now_utc_iso()
        started = time.monotonic()
        self.events.sweep_started(config.input_path, config.output_dir, lambdas, image.shape, config.parameters())
        logger.info(
            "sweeping %d λ value(s) from %g to %g on %s",
            len(lambdas),
            lambdas[0],
            lambdas[-1],
            config.input_path,
        )

        def record(outcome: SolveOutcome) -> None:
            try:
                self.events.run_outcome(outcome)
            finally:
                if on_outcome is not None:
                    on_outcome(outcome)

        outcomes = dispatch(
            lambdas,
            image,
            solver,
            max_iterations=config.max_iterations,
            convergence_threshold=config.convergence_threshold,
            max_workers=config.max_workers,
            on_outcome=record,
        )
        result = collect(outcomes)
        report = write_outputs(result, config.output_dir, config.input_path.stem, writer=self.image_writer)
        for lambda_value, path in report.written.items():
            self.events.image_written(lambda_value, path)
        for failure in report.failures:
            if failure.stage == "write":
                self.events.image_write_failed(failure)

        elapsed = max(time.monotonic() - started, 0.0)
        summary = SweepSummary(
            sweep_id=self.sweep_id,
            started_at=started_at,
            finished_at=now_utc_iso(),
            solver=solver.name,
            input_path=str(config.input_path),
            parameters=config.parameters(),
            rows=summary_rows(result, report),
            failures=[
                {"lambda": failure.lambda_value, "stage": failure.stage, "reason": failure.reason}
                for failure in report.failures
            ],
        )
        write_summary(self.summary_path, summary)
        self.events.sweep_finished(
            self.summary_path,
            total_runs=len(result.outcomes),
            written=len(report.written),
            failures=len(report.failures),
            elapsed_s=elapsed,
        )
        if report.failures:
            logger.warning("%d of %d λ value(s) failed", len(report.failures), len(result.outcomes))
        return SweepRun(
            sweep_id=self.sweep_id,
            result=result,
            report=report,
            summary_path=self.summary_path,
            elapsed_s=elapsed,
        )

"""Append-only sweep events stream.

One JSON object per line. Every event carries ``type``, ``sweep_id`` and
``ts``; the helpers below fix the payload of each event kind so readers of
``events.jsonl`` can rely on its keys.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from ..solvers.base import SolveOutcome
from ..utils import now_utc_iso, serialize
from .aggregate import SweepFailure

EVENT_TYPES = (
    "sweep_started",
    "run_finished",
    "run_failed",
    "image_written",
    "image_write_failed",
    "sweep_finished",
)


@dataclass
class EventWriter:
    path: Path
    sweep_id: str
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, init=False)

    def emit(self, event_type: str, **payload: Any) -> dict[str, Any]:
        if event_type not in EVENT_TYPES:
            raise ValueError(f"unknown sweep event type: {event_type}")
        event = {"type": event_type, "sweep_id": self.sweep_id, "ts": now_utc_iso()}
        event.update(serialize(payload))
        line = f"{json.dumps(event)}\n"
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line)
        return event

    def sweep_started(
        self,
        input_path: Path,
        output_dir: Path,
        lambdas: Sequence[float],
        image_shape: Sequence[int],
        parameters: dict[str, Any],
    ) -> dict[str, Any]:
        return self.emit(
            "sweep_started",
            input_path=str(input_path),
            output_dir=str(output_dir),
            lambdas=list(lambdas),
            image_shape=list(image_shape),
            **parameters,
        )

    def run_outcome(self, outcome: SolveOutcome) -> dict[str, Any]:
        """``run_finished`` for a produced image, ``run_failed`` otherwise."""
        if outcome.ok:
            return self.emit(
                "run_finished",
                lambda_value=outcome.lambda_value,
                iterations=outcome.iterations,
                converged=outcome.converged,
                elapsed_s=outcome.elapsed_s,
            )
        return self.emit(
            "run_failed",
            lambda_value=outcome.lambda_value,
            error=outcome.error,
            elapsed_s=outcome.elapsed_s,
        )

    def image_written(self, lambda_value: float, image_path: Path) -> dict[str, Any]:
        return self.emit("image_written", lambda_value=lambda_value, image_path=str(image_path))

    def image_write_failed(self, failure: SweepFailure) -> dict[str, Any]:
        return self.emit("image_write_failed", lambda_value=failure.lambda_value, error=failure.reason)

    def sweep_finished(
        self,
        summary_path: Path,
        total_runs: int,
        written: int,
        failures: int,
        elapsed_s: float,
    ) -> dict[str, Any]:
        return self.emit(
            "sweep_finished",
            summary_path=str(summary_path),
            total_runs=total_runs,
            written=written,
            failures=failures,
            elapsed_s=elapsed_s,
        )

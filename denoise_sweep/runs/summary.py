"""Sweep summary generation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..utils import now_utc_iso, read_json, serialize, write_json
from .aggregate import SweepResult, WriteReport

SUMMARY_SCHEMA_VERSION = 1


@dataclass
class SweepSummary:
    sweep_id: str
    started_at: str
    finished_at: str
    solver: str
    input_path: str
    parameters: dict[str, Any]
    rows: list[dict[str, Any]]
    failures: list[dict[str, Any]]

    @property
    def total_runs(self) -> int:
        return len(self.rows)


def summary_rows(result: SweepResult, report: WriteReport) -> list[dict[str, Any]]:
    errors = {failure.lambda_value: failure.reason for failure in report.failures}
    rows: list[dict[str, Any]] = []
    for outcome in result.outcomes:
        path = report.written.get(outcome.lambda_value)
        rows.append(
            {
                "lambda": outcome.lambda_value,
                "label": report.labels.get(outcome.lambda_value),
                "iterations": outcome.iterations,
                "converged": outcome.converged,
                "elapsed_s": round(outcome.elapsed_s, 6),
                "image_path": str(path) if path else None,
                "error": errors.get(outcome.lambda_value),
            }
        )
    return rows


def write_summary(path: Path, summary: SweepSummary) -> None:
    payload = {
        "schema_version": SUMMARY_SCHEMA_VERSION,
        "sweep_id": summary.sweep_id,
        "started_at": summary.started_at,
        "finished_at": summary.finished_at,
        "solver": summary.solver,
        "input_path": summary.input_path,
        "parameters": serialize(summary.parameters),
        "total_runs": summary.total_runs,
        "total_failures": len(summary.failures),
        "rows": serialize(summary.rows),
        "failures": serialize(summary.failures),
        "ts": now_utc_iso(),
    }
    write_json(path, payload)


def load_summary(path: Path) -> dict[str, Any]:
    payload = read_json(path, {})
    return payload if isinstance(payload, dict) else {}

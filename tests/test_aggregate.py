from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from denoise_sweep.errors import ImageWriteError
from denoise_sweep.lambdas import generate
from denoise_sweep.runs.aggregate import collect, lambda_labels, output_filename, write_outputs
from denoise_sweep.solvers.base import SolveOutcome


def _ok(lam: float, iterations: int = 5, converged: bool = True) -> SolveOutcome:
    return SolveOutcome(lambda_value=lam, image=np.full((4, 4, 3), 0.5), iterations=iterations, converged=converged)


def test_collect_orders_by_lambda() -> None:
    result = collect([_ok(0.3), _ok(0.1), SolveOutcome.failed(0.2, "boom"), _ok(0.05)])

    assert result.lambdas == [0.05, 0.1, 0.2, 0.3]
    assert result.get(0.2).error == "boom"
    assert result.get(0.7) is None
    assert [failure.lambda_value for failure in result.failures] == [0.2]
    assert [failure.stage for failure in result.failures] == ["solve"]
    assert len(result.succeeded) == 3


def test_collect_rejects_duplicate_lambda() -> None:
    with pytest.raises(ValueError):
        collect([_ok(0.1), _ok(0.1)])


def test_labels_use_fixed_precision() -> None:
    labels = lambda_labels(generate(0.001, 0.08, 5))

    assert list(labels.values()) == [
        "0.0010000000",
        "0.0029906976",
        "0.0089442719",
        "0.0267496122",
        "0.0800000000",
    ]


def test_labels_sort_lexically_like_numbers() -> None:
    values = [0.5, 2.0, 9.75, 10.0, 150.0, 1234.5]
    labels = lambda_labels(values)

    assert sorted(labels.values()) == [labels[value] for value in sorted(values)]
    assert len({len(label) for label in labels.values()}) == 1


def test_labels_grow_precision_to_avoid_collisions() -> None:
    close = [1.0, 1.0 + 1e-12]
    labels = lambda_labels(close)

    assert labels[close[0]] != labels[close[1]]
    assert labels[close[0]] < labels[close[1]]


def test_output_filename() -> None:
    assert output_filename("lena", "0.0010000000") == "lena_lambda_0.0010000000.png"


def test_write_outputs_skips_failed_runs_and_isolates_write_errors(tmp_path: Path) -> None:
    result = collect([_ok(0.1), SolveOutcome.failed(0.2, "SolverError: diverged"), _ok(0.3), _ok(0.4)])

    def flaky_writer(pixels: np.ndarray, path: Path) -> Path:
        if "0.3000000000" in path.name:
            raise ImageWriteError("disk full")
        Image.fromarray((pixels * 255).astype(np.uint8)).save(path)
        return path

    report = write_outputs(result, tmp_path, "photo", writer=flaky_writer)

    assert sorted(report.written) == [0.1, 0.4]
    assert report.written[0.1] == tmp_path / "photo_lambda_0.1000000000.png"
    assert report.written[0.1].exists()
    assert [(f.lambda_value, f.stage) for f in report.failures] == [(0.2, "solve"), (0.3, "write")]
    assert "disk full" in report.failures[1].reason
    assert report.ok is False


def test_repeated_writes_produce_same_filenames(tmp_path: Path) -> None:
    outcomes = [_ok(value) for value in generate(0.001, 0.08, 5)]
    first = write_outputs(collect(outcomes), tmp_path / "a", "img")
    second = write_outputs(collect(list(reversed(outcomes))), tmp_path / "b", "img")

    assert [p.name for p in first.written.values()] == [p.name for p in second.written.values()]
    assert sorted(p.name for p in first.written.values()) == [p.name for p in first.written.values()]


def test_labels_stay_distinct_for_tiny_lambdas() -> None:
    values = generate(1e-22, 3e-22, 3)
    labels = lambda_labels(values)

    assert len(set(labels.values())) == 3
    assert [labels[value] for value in values] == sorted(labels.values())
    assert len({len(label) for label in labels.values()}) == 1
    assert labels[values[0]].startswith("0.0000000000000000000001")


def test_single_tiny_lambda_label_is_not_all_zeros() -> None:
    label = lambda_labels([1e-22])[1e-22]

    assert label.strip("0.") != ""
    assert float(label) == pytest.approx(1e-22)

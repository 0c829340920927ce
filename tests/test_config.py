from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from denoise_sweep.config import SweepConfig, env_defaults
from denoise_sweep.errors import InvalidConcurrencyBound, InvalidRange, InvalidSweepConfig


def _config(tmp_path: Path, **overrides) -> SweepConfig:
    input_path = tmp_path / "in.png"
    if not input_path.exists():
        Image.new("RGB", (4, 4), (1, 2, 3)).save(input_path)
    values = {
        "input_path": input_path,
        "output_dir": tmp_path,
        "start_lambda": 0.001,
        "end_lambda": 0.08,
        "steps": 5,
        "max_iterations": 100,
        "convergence_threshold": 1e-6,
    }
    values.update(overrides)
    return SweepConfig(**values)


def test_validate_returns_lambdas(tmp_path: Path) -> None:
    values = _config(tmp_path).validate(["chambolle-pock"])

    assert len(values) == 5
    assert values[0] == 0.001


def test_validate_checks_range_first(tmp_path: Path) -> None:
    with pytest.raises(InvalidRange):
        _config(tmp_path, start_lambda=0.0).validate()


def test_validate_rejects_zero_workers(tmp_path: Path) -> None:
    with pytest.raises(InvalidConcurrencyBound):
        _config(tmp_path, max_workers=0).validate()


def test_validate_rejects_unknown_solver(tmp_path: Path) -> None:
    with pytest.raises(InvalidSweepConfig):
        _config(tmp_path, solver="nope").validate(["chambolle-pock", "dryrun"])


def test_validate_requires_input_file(tmp_path: Path) -> None:
    with pytest.raises(InvalidSweepConfig):
        _config(tmp_path, input_path=tmp_path / "missing.png").validate()


def test_validate_requires_output_dir(tmp_path: Path) -> None:
    with pytest.raises(InvalidSweepConfig):
        _config(tmp_path, output_dir=tmp_path / "out").validate()


def test_validate_can_create_output_dir(tmp_path: Path) -> None:
    config = _config(tmp_path, output_dir=tmp_path / "out" / "nested", create_output_dir=True)
    config.validate()

    assert (tmp_path / "out" / "nested").is_dir()
    assert config.resolved_events_path == tmp_path / "out" / "nested" / "events.jsonl"


def test_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DENOISE_SWEEP_WORKERS", "3")
    monkeypatch.setenv("DENOISE_SWEEP_SOLVER", "dryrun")
    monkeypatch.delenv("DENOISE_SWEEP_LOG_LEVEL", raising=False)

    defaults = env_defaults()

    assert defaults == {"max_workers": 3, "solver": "dryrun", "log_level": "INFO"}


def test_env_defaults_ignore_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DENOISE_SWEEP_WORKERS", "many")
    monkeypatch.delenv("DENOISE_SWEEP_SOLVER", raising=False)

    defaults = env_defaults()

    assert defaults["max_workers"] is None
    assert defaults["solver"] == "chambolle-pock"

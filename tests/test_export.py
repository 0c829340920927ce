from __future__ import annotations

from pathlib import Path

from denoise_sweep.runs.export import export_html
from denoise_sweep.utils import write_json


def test_export_html(tmp_path: Path) -> None:
    sweep_dir = tmp_path / "sweep"
    sweep_dir.mkdir()
    write_json(
        sweep_dir / "summary.json",
        {
            "schema_version": 1,
            "sweep_id": "s1",
            "solver": "chambolle-pock",
            "input_path": "photo.png",
            "rows": [
                {
                    "lambda": 0.001,
                    "label": "0.0010000000",
                    "iterations": 12,
                    "converged": True,
                    "image_path": str(sweep_dir / "photo_lambda_0.0010000000.png"),
                    "error": None,
                },
                {
                    "lambda": 0.08,
                    "label": "0.0800000000",
                    "iterations": 0,
                    "converged": False,
                    "image_path": None,
                    "error": "SolverError: <diverged>",
                },
            ],
        },
    )
    out_path = sweep_dir / "index.html"
    export_html(sweep_dir, out_path)
    assert out_path.exists()
    html = out_path.read_text(encoding="utf-8")
    assert "λ Sweep Export" in html
    assert "src='photo_lambda_0.0010000000.png'" in html
    assert "12 iterations, converged" in html
    assert "SolverError: &lt;diverged&gt;" in html
    assert "no image" in html


def test_export_html_without_summary(tmp_path: Path) -> None:
    out_path = export_html(tmp_path, tmp_path / "out" / "index.html")
    assert "λ Sweep Export" in out_path.read_text(encoding="utf-8")

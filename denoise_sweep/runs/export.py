"""Export a sweep to an HTML contact sheet."""

from __future__ import annotations

import html
import os
from pathlib import Path

from .summary import load_summary


def export_html(sweep_dir: Path, out_path: Path) -> Path:
    summary = load_summary(sweep_dir / "summary.json")
    rows = summary.get("rows", [])
    if not isinstance(rows, list):
        rows = []

    cards: list[str] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        label = html.escape(str(row.get("label") or row.get("lambda", "")))
        iterations = html.escape(str(row.get("iterations", "")))
        converged = "converged" if row.get("converged") else "iteration limit"
        error = row.get("error")
        image_path = row.get("image_path")
        if image_path:
            src = _relative_src(Path(str(image_path)), out_path.parent)
            thumb = f"<img src='{html.escape(src)}' alt='λ {label}'>"
        else:
            thumb = "<span class='missing'>no image</span>"
        status = f"<div class='error'>{html.escape(str(error))}</div>" if error else ""
        cards.append(
            f"<div class='card'>"
            f"<div class='thumb'>{thumb}</div>"
            f"<div class='meta'><div class='lambda'>λ = {label}</div>"
            f"<div class='iters'>{iterations} iterations, {converged}</div>"
            f"{status}</div>"
            f"</div>"
        )

    title = html.escape(str(summary.get("input_path") or sweep_dir.name))
    solver = html.escape(str(summary.get("solver") or "unknown"))
    html_doc = f"""
<!doctype html>
<html>
<head>
  <meta charset='utf-8'>
  <title>λ Sweep Export</title>
  <style>
    body {{ font-family: Arial, sans-serif; background: #f6f6f6; margin: 0; padding: 20px; }}
    .grid {{ display: grid; grid-template-columns: repeat(auto-fill, minmax(240px, 1fr)); gap: 16px; }}
    .card {{ background: white; border-radius: 10px; overflow: hidden; box-shadow: 0 2px 8px rgba(0,0,0,0.08); }}
    .thumb {{ width: 100%; height: 200px; background: #eee; display: flex; align-items: center; justify-content: center; }}
    .thumb img {{ max-width: 100%; max-height: 100%; }}
    .meta {{ padding: 10px; }}
    .lambda {{ font-weight: bold; font-size: 13px; color: #444; }}
    .iters {{ font-size: 12px; margin: 6px 0; }}
    .error {{ font-size: 12px; color: #b00020; }}
  </style>
</head>
<body>
  <h1>λ Sweep Export</h1>
  <p>{title} ({solver})</p>
  <div class='grid'>
    {''.join(cards)}
  </div>
</body>
</html>
"""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(html_doc, encoding="utf-8")
    return out_path


def _relative_src(image_path: Path, base: Path) -> str:
    try:
        return Path(os.path.relpath(image_path, base)).as_posix()
    except ValueError:
        return image_path.as_posix()

"""λ sweep CLI entrypoints.

The ``run`` command denoises one input image for as many λ values as asked
for: choose a start and end point and how many steps there should be between
them. Each λ runs for at most ``--max-iter`` iterations and may stop earlier
once the relative difference between consecutive candidate outputs drops to
``--convergence-threshold``.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .cli_progress import ProgressTicker, SweepProgress
from .config import SweepConfig, env_defaults
from .engine import SweepEngine, SweepRun
from .errors import ImageDecodeError, SweepError
from .lambdas import generate
from .logging_cfg import resolve_level, setup_logging
from .runs.aggregate import lambda_labels
from .runs.export import export_html
from .solvers import default_registry
from .utils import load_dotenv


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def _add_range_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", "--start-lambda", dest="start_lambda", type=float, required=True, help="Starting range for λ values")
    parser.add_argument("-e", "--end-lambda", dest="end_lambda", type=float, required=True, help="End range for λ values")
    parser.add_argument("-t", "--steps", type=int, required=True, help="Number of λ values between start and end")


def _build_parser() -> argparse.ArgumentParser:
    defaults = env_defaults()
    parser = argparse.ArgumentParser(prog="denoise-sweep", description="Total-variation denoising over a λ sweep")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Denoise an image once per λ value")
    run.add_argument("-i", "--input", dest="input_image", required=True, help="Path of input image")
    run.add_argument("-o", "--output", dest="output_folder", required=True, help="Folder in which output images are saved")
    run.add_argument("-m", "--max-iter", dest="max_iter", type=int, required=True, help="Maximum number of iterations")
    run.add_argument(
        "-c",
        "--convergence-threshold",
        dest="convergence_threshold",
        type=float,
        required=True,
        help="Relative change between iterates at which a run counts as converged",
    )
    _add_range_args(run)
    run.add_argument(
        "-j",
        "--workers",
        type=_positive_int,
        default=defaults["max_workers"],
        help="Maximum concurrent solves (default: available CPUs)",
    )
    run.add_argument("--solver", default=defaults["solver"], choices=default_registry().list())
    run.add_argument("--events", help="Path to events.jsonl (default: <output>/events.jsonl)")
    run.add_argument("--create-output-dir", action="store_true", help="Create the output folder if missing")
    run.add_argument("--log-dir", help="Also write logs to a timestamped file in this folder")
    run.add_argument("-v", "--verbose", action="count", default=0)
    run.add_argument("-q", "--quiet", action="store_true")
    run.set_defaults(log_level=defaults["log_level"])

    lambdas = sub.add_parser("lambdas", help="Print the λ values a sweep would use")
    _add_range_args(lambdas)

    export = sub.add_parser("export", help="Export a sweep to HTML")
    export.add_argument("--sweep", required=True, help="Sweep output folder")
    export.add_argument("--out", required=True, help="Output HTML path")

    return parser


def _config_from_args(args: argparse.Namespace) -> SweepConfig:
    return SweepConfig(
        input_path=Path(args.input_image),
        output_dir=Path(args.output_folder),
        start_lambda=args.start_lambda,
        end_lambda=args.end_lambda,
        steps=args.steps,
        max_iterations=args.max_iter,
        convergence_threshold=args.convergence_threshold,
        max_workers=args.workers,
        solver=args.solver,
        events_path=Path(args.events) if args.events else None,
        log_level=args.log_level,
        create_output_dir=args.create_output_dir,
    )


def _print_report(run: SweepRun) -> None:
    labels = run.report.labels
    for outcome in run.result.outcomes:
        label = labels.get(outcome.lambda_value, f"{outcome.lambda_value:.10f}")
        path = run.report.written.get(outcome.lambda_value)
        if path is None:
            continue
        status = "converged" if outcome.converged else "iteration limit"
        print(f"λ={label}  {outcome.iterations:>6} iterations  {status:<15}  {path}")
    if run.report.failures:
        print(f"{len(run.report.failures)} λ value(s) failed:")
        for failure in run.report.failures:
            label = labels.get(failure.lambda_value, f"{failure.lambda_value:.10f}")
            print(f"  λ={label} [{failure.stage}] {failure.reason}")


def _handle_run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    setup_logging(resolve_level(args.log_level, args.verbose, args.quiet), log_dir=args.log_dir)
    config = _config_from_args(args)
    engine = SweepEngine(config)
    try:
        lambdas = config.validate(engine.solvers.list())
    except SweepError as exc:
        parser.error(str(exc))
    ticker = ProgressTicker(f"Denoising λ sweep 0/{len(lambdas)}")
    progress = SweepProgress(ticker, len(lambdas))
    ticker.start_ticking()
    try:
        run = engine.run(on_outcome=progress)
    except (ImageDecodeError, OSError) as exc:
        ticker.stop(done=False)
        print(f"Sweep aborted: {exc}", file=sys.stderr)
        return 1
    except BaseException:
        ticker.stop(done=False)
        raise
    ticker.stop(done=True)
    _print_report(run)
    print(f"Summary: {run.summary_path}")
    return 0 if run.ok else 1


def _handle_lambdas(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    try:
        values = generate(args.start_lambda, args.end_lambda, args.steps)
    except SweepError as exc:
        parser.error(str(exc))
    labels = lambda_labels(values)
    for idx, value in enumerate(values):
        print(f"{idx:>4}  {labels[value]}")
    return 0


def _handle_export(args: argparse.Namespace) -> int:
    sweep_dir = Path(args.sweep)
    out_path = Path(args.out)
    export_html(sweep_dir, out_path)
    print(f"Exported to {out_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "run":
        return _handle_run(args, parser)
    if args.command == "lambdas":
        return _handle_lambdas(args, parser)
    if args.command == "export":
        return _handle_export(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())

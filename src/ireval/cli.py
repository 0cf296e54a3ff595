from __future__ import annotations

import argparse
import json
import sys
from typing import Sequence

from . import __version__
from .config import DEFAULT_OUTPUT_PREFIX, EvaluationConfig
from .errors import EvaluationError
from .loaders import FORMATS
from .reporting import Reporter
from .runner import evaluate


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ireval",
        description="Evaluate query results against a gold standard of relevance judgements.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"ireval {__version__}")
    parser.add_argument(
        "-l",
        "--load",
        dest="gold_standard_file",
        metavar="GOLD_STANDARD_FILE",
        help="Load the gold standard from this file.",
    )
    parser.add_argument(
        "-q",
        "--queries",
        dest="query_result_set_file",
        metavar="QUERY_RESULTS_FILE",
        help="Load the query result set from this file.",
    )
    parser.add_argument(
        "-f",
        "--format",
        default="yaml",
        choices=FORMATS,
        help="Data format used when parsing both files.",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT_PREFIX,
        help="Prefix for the output files.",
    )
    parser.add_argument("--no-cleanup", action="store_true", help="Keep retrieved documents without judgements.")
    parser.add_argument("--no-csv", action="store_true", help="Do not write the per-query summary CSV.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose (debug) mode.")
    parser.add_argument("--json", action="store_true", help="Emit machine-readable output.")
    return parser


def handle(args: argparse.Namespace) -> int:
    config = EvaluationConfig(
        gold_standard_file=args.gold_standard_file,
        query_result_set_file=args.query_result_set_file,
        format=args.format,
        output=args.output,
        verbose=args.verbose,
        cleanup=not args.no_cleanup,
        write_csv=not args.no_csv,
    )
    try:
        report = evaluate(config, Reporter(verbose=args.verbose))
    except (EvaluationError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report.summary(), indent=2))
        return 0

    print(f"Evaluated {len(report.statistics)} query results.")
    if report.mean_average_precision is not None:
        print(f"MAP:   {report.mean_average_precision:.4f}")
    if report.kappa is not None:
        print(f"Kappa: {report.kappa:.4f}")
    for path in report.output_files:
        print(f"Wrote {path}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        parser.print_help()
        return 0
    args = parser.parse_args(argv)
    if not args.gold_standard_file or not args.query_result_set_file:
        parser.error("both --load and --queries are required")
    return handle(args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())

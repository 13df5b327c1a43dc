"""pkgrank CLI — rank packages by import-graph centrality.

Usage::

    pkgrank ./... [options]
    python -m pkgrank ./src --language python [options]

Options::

    --prefix / -p P       Only count imports starting with P
    --num / -n N          Show the top N entries, all if non-positive
    --files               Collect imports per source file instead of per package
    --measure M           Centrality measure (only "pagerank")
    --language LANG       Import source: go (default) or python
    --workers W           Maximum concurrent package queries
    --json-output         Print a JSON report instead of plain lines
    --verbose / -v        Enable verbose logging
"""

import argparse
import json
import logging
import sys

from pkgrank.builder import DEFAULT_MAX_WORKERS
from pkgrank.centrality import CentralityMeasure
from pkgrank.pipeline import SUPPORTED_LANGUAGES, RankConfig, run_rank
from pkgrank.report import format_ranking, ranking_as_dict


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="pkgrank",
        description="Discover the graph centrality of packages from their imports.",
    )
    parser.add_argument(
        "root",
        help="Package pattern (e.g. ./... for Go) or source directory (Python)",
    )
    parser.add_argument(
        "--prefix", "-p",
        default="",
        help="Filter imports by prefix, no filter if empty",
    )
    parser.add_argument(
        "--num", "-n",
        type=int,
        default=16,
        help="Top number of packages to show, all if non-positive",
    )
    parser.add_argument(
        "--files",
        action="store_true",
        default=False,
        help="Iterate over each package's source files instead of whole packages",
    )
    parser.add_argument(
        "--measure",
        default=CentralityMeasure.PAGERANK.value,
        help="Centrality measure to use (default: pagerank)",
    )
    parser.add_argument(
        "--language",
        choices=list(SUPPORTED_LANGUAGES),
        default="go",
        help="Which import source to use (default: go)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help=f"Maximum concurrent package queries (default: {DEFAULT_MAX_WORKERS})",
    )
    parser.add_argument(
        "--json-output",
        action="store_true",
        default=False,
        help="Print a structured JSON report instead of plain lines",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=False,
        help="Enable verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns exit code (0=success, 1=failure)."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    if args.workers < 1:
        print("Error: --workers must be at least 1", file=sys.stderr)
        return 1

    config = RankConfig(
        root=args.root,
        prefix=args.prefix,
        limit=args.num,
        per_file=args.files,
        measure=args.measure,
        language=args.language,
        max_workers=args.workers,
    )
    result = run_rank(config)

    if not result.success:
        for s in result.stages:
            if not s.success:
                print(f"Error ({s.stage}): {s.error}", file=sys.stderr)
        return 1

    if result.warnings:
        print(
            f"Warning: {len(result.warnings)} package(s) failed; ranking is partial:",
            file=sys.stderr,
        )
        for w in result.warnings:
            print(f"  - {w}", file=sys.stderr)

    if args.json_output:
        print(json.dumps(ranking_as_dict(result, config.limit), indent=2))
    else:
        for line in format_ranking(result.labels, result.scores, config.limit):
            print(line)

    return 0

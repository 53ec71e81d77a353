from __future__ import annotations

import argparse
from pathlib import Path

from .analysis_periods import GRANULARITIES
from .analysis_run import run_analysis


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-contributor-insights analyze",
        description="Analyze vendor vs community contributions in a local git repository.",
    )
    parser.add_argument("repo", type=Path, help="Path to the git repository to analyze.")
    parser.add_argument("-c", "--config", type=Path, default=None, help="Vendor rules file (.yaml/.yml or .json). Omit to classify by email domain.")
    parser.add_argument("--since", type=str, default="", help="Only analyze commits since this date (YYYY-MM-DD).")
    parser.add_argument("--until", type=str, default="", help="Only analyze commits until this date, inclusive (YYYY-MM-DD).")
    parser.add_argument("-w", "--workers", type=int, default=8, help="Parallel commit readers (<= 0 means 4).")
    parser.add_argument("-b", "--breakdown", choices=list(GRANULARITIES), default=None, help="Time breakdown: year, quarter, month or week.")
    parser.add_argument("--top-n", type=int, default=5, help="Vendors shown individually in charts before grouping the rest as 'others'.")
    return parser


def main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.top_n < 1:
        parser.error("--top-n must be >= 1")
    return run_analysis(args=args)

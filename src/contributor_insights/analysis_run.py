from __future__ import annotations

import argparse
import functools
import sys
import time
from pathlib import Path

from .analysis_aggregate import analyze_repository
from .analysis_periods import analyze_timeline, end_of_day, parse_date
from .analysis_render import fmt_int, render_analysis, render_timeline
from .config import ConfigError, load_classifier
from .git import GitError, extract_commit, fetch_contributors, list_commits, open_repo, repo_name
from .identity import VendorClassifier
from .pool import process_ordered


def _print_header(*, repo: Path, config: Path | None, workers: int, breakdown: str | None) -> None:
    lines = [
        "┌──────────────────────────────────────────────────────────────┐",
        "│                  git-contributor-insights                    │",
        "└──────────────────────────────────────────────────────────────┘",
        "",
        f"- Repository: {repo}",
        f"- Vendor rules: {config if config else 'none (classify by email domain)'}",
        f"- Workers: {workers}  Breakdown: {breakdown or 'whole history'}",
        "",
    ]
    print("\n".join(lines))


def _print_classifier_mode(classifier: VendorClassifier) -> None:
    if classifier.auto_mode:
        print("No vendor config - using automatic domain classification")
        print("  Personal emails (gmail, yahoo, etc.) -> 'community'")
        print("  Corporate emails -> '@domain' (e.g. '@confluent.io')")
        return
    print(f"Loaded vendor config: {', '.join(classifier.vendor_names())}")


def _progress(done: int, total: int) -> None:
    if done % 500 == 0 or done == total:
        print(f"Read {fmt_int(done)}/{fmt_int(total)} commits...")


def run_analysis(*, args: argparse.Namespace) -> int:
    _print_header(repo=args.repo, config=args.config, workers=int(args.workers), breakdown=args.breakdown)

    try:
        classifier = load_classifier(args.config)
        since = parse_date(args.since) if args.since else None
        until = end_of_day(parse_date(args.until)) if args.until else None
        repo = open_repo(args.repo)
    except (ConfigError, GitError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _print_classifier_mode(classifier)

    started = time.monotonic()
    try:
        name = repo_name(repo)
        print(f"Repository: {name}")
        shas = list_commits(repo, since=since, until=until)
    except GitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    result = process_ordered(shas, functools.partial(extract_commit, repo), workers=int(args.workers), progress=_progress)
    elapsed = max(time.monotonic() - started, 1e-6)
    commits = result.items
    print(f"Processed {fmt_int(len(commits))} commits in {elapsed:.2f}s ({len(commits) / elapsed:.0f} commits/sec)")
    if result.skipped:
        print(f"Warning: skipped {fmt_int(result.skipped)} commits whose stats could not be read.")

    if not commits:
        print("No commits found in the specified date range")
        return 0

    try:
        contributors = fetch_contributors(repo)
    except GitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Found {fmt_int(len(contributors))} unique contributors")
    print("")

    if args.breakdown:
        timeline = analyze_timeline(commits, classifier, name, args.breakdown, skipped=result.skipped)
        print(render_timeline(timeline))
    else:
        analysis = analyze_repository(commits, classifier, name, skipped=result.skipped)
        print(render_analysis(analysis, top_n=int(args.top_n)))
    return 0

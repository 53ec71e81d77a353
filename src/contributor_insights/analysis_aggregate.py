from __future__ import annotations

import dataclasses
import datetime as dt
from collections.abc import Iterable

from .identity import VendorClassifier
from .models import CategoryMetrics, CommitRecord, DateRange, RepositoryAnalysis, as_utc


@dataclasses.dataclass
class FoldResult:
    metrics: dict[str, CategoryMetrics]
    contributors: set[str]
    date_range: DateRange
    commits: int = 0


def month_key(ts: dt.datetime) -> str:
    ts = as_utc(ts)
    return f"{ts.year:04d}-{ts.month:02d}"


def _bump(counter: dict[str, int], key: str, n: int) -> None:
    counter[key] = counter.get(key, 0) + n


def fold_records(
    records: Iterable[CommitRecord],
    classifier: VendorClassifier,
    categories: list[str] | None = None,
) -> FoldResult:
    """
    Accumulate `records` into per-category totals. Categories the classifier
    knows up front start at zero; others (auto mode) are created on first use.
    """
    if categories is None:
        categories = classifier.categories()
    metrics: dict[str, CategoryMetrics] = {name: CategoryMetrics(name=name) for name in categories}
    contributors: set[str] = set()
    date_range = DateRange()
    n = 0

    for c in records:
        category = classifier.classify(c.author_email)
        m = metrics.get(category)
        if m is None:
            m = CategoryMetrics(name=category)
            metrics[category] = m

        m.total_commits += 1
        m.total_additions += c.additions
        m.total_deletions += c.deletions

        author = c.author_id
        if author:
            m.contributors.add(author)
            contributors.add(author)

        mk = month_key(c.timestamp)
        _bump(m.commits_by_month, mk, 1)
        _bump(m.additions_by_month, mk, c.additions)
        _bump(m.deletions_by_month, mk, c.deletions)

        date_range = date_range.widen(c.timestamp)
        n += 1

    return FoldResult(metrics=metrics, contributors=contributors, date_range=date_range, commits=n)


def analyze_repository(
    commits: list[CommitRecord],
    classifier: VendorClassifier,
    repo_name: str,
    *,
    skipped: int = 0,
) -> RepositoryAnalysis:
    fold = fold_records(commits, classifier)
    return RepositoryAnalysis(
        repo_name=repo_name,
        total_commits=fold.commits,
        total_contributors=len(fold.contributors),
        date_range=fold.date_range,
        metrics=fold.metrics,
        skipped=skipped,
    )


def timeline_data(analysis: RepositoryAnalysis, metric: str) -> dict[str, dict[str, int]]:
    """month -> category -> value, for commits/additions/deletions."""
    out: dict[str, dict[str, int]] = {}
    for name, m in analysis.metrics.items():
        if metric == "commits":
            by_month = m.commits_by_month
        elif metric == "additions":
            by_month = m.additions_by_month
        elif metric == "deletions":
            by_month = m.deletions_by_month
        else:
            return {}
        for month, value in by_month.items():
            out.setdefault(month, {})[name] = value
    return dict(sorted(out.items()))

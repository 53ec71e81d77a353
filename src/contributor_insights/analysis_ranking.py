from __future__ import annotations

from collections.abc import Mapping

from .models import COMMUNITY, METRICS, OTHERS, CategoryMetrics, PeriodBucket, RankedGroup, TimelineAnalysis

RANK_METRICS = ("commits", "additions", "contributors")


def _check_metric(by: str) -> None:
    if by not in METRICS:
        raise ValueError(f"Unknown metric: {by!r} (expected one of {', '.join(METRICS)})")


def sorted_categories(metrics: Mapping[str, CategoryMetrics], by: str = "commits", *, reverse: bool = True) -> list[str]:
    """Category names ordered by `by`; equal values fall back to name order."""
    _check_metric(by)
    sign = -1 if reverse else 1
    return sorted(metrics, key=lambda name: (sign * metrics[name].value(by), name))


def rank_groups(
    metrics: Mapping[str, CategoryMetrics],
    by: str = "commits",
    top_n: int = 5,
    *,
    hide_empty: bool = False,
) -> list[RankedGroup]:
    """
    Community first (if present), then the top vendors by `by`. When there are
    more than `top_n` vendors, only `top_n - 1` are kept and the remainder is
    rolled into a single "others" group.
    """
    if top_n < 1:
        raise ValueError(f"top_n must be >= 1, got {top_n}")
    _check_metric(by)

    visible = {name: m for name, m in metrics.items() if not (hide_empty and m.total_commits == 0)}
    out: list[RankedGroup] = []
    community = visible.pop(COMMUNITY, None)
    if community is not None:
        out.append(RankedGroup.from_metrics(community))

    names = sorted_categories(visible, by)
    if len(names) <= top_n:
        out.extend(RankedGroup.from_metrics(visible[n]) for n in names)
        return out

    keep = top_n - 1
    out.extend(RankedGroup.from_metrics(visible[n]) for n in names[:keep])
    others = RankedGroup(name=OTHERS, is_grouped=True)
    for n in names[keep:]:
        m = visible[n]
        others.total_commits += m.total_commits
        others.total_additions += m.total_additions
        others.total_deletions += m.total_deletions
        others.contributors |= m.contributors
    out.append(others)
    return out


def timeline_columns(timeline: TimelineAnalysis, max_columns: int = 5) -> list[str]:
    """
    Categories to show as timeline columns: community first, then vendors by
    commits summed over all periods, with overflow collapsed into "others".
    """
    if max_columns < 1:
        raise ValueError(f"max_columns must be >= 1, got {max_columns}")
    totals: dict[str, int] = {}
    for period in timeline.periods:
        for name, m in period.metrics.items():
            totals[name] = totals.get(name, 0) + m.total_commits

    columns: list[str] = []
    if totals.get(COMMUNITY, 0) > 0:
        columns.append(COMMUNITY)
    vendors = sorted((n for n, v in totals.items() if n != COMMUNITY and v > 0), key=lambda n: (-totals[n], n))

    available = max_columns - len(columns)
    if len(vendors) <= available:
        columns.extend(vendors)
    elif available > 0:
        columns.extend(vendors[: available - 1])
        columns.append(OTHERS)
    return columns


def others_commits(period: PeriodBucket, shown: list[str]) -> tuple[int, float]:
    """Commits (and share of the period) for vendors not in `shown`."""
    hidden = set(shown) | {COMMUNITY}
    commits = sum(m.total_commits for name, m in period.metrics.items() if name not in hidden)
    pct = commits / period.total_commits * 100 if period.total_commits > 0 else 0.0
    return commits, pct

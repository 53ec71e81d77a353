from __future__ import annotations

from .analysis_ranking import RANK_METRICS, others_commits, rank_groups, sorted_categories, timeline_columns
from .models import COMMUNITY, OTHERS, DateRange, RankedGroup, RepositoryAnalysis, TimelineAnalysis

BANNER = r"""
+------------------------------------------------------------------------+
|                        CONTRIBUTOR INSIGHTS                            |
+------------------------------------------------------------------------+
""".strip("\n")

BREAKDOWN_LABELS = {
    "year": "Year-over-Year",
    "quarter": "Quarter-over-Quarter",
    "month": "Month-over-Month",
    "week": "Week-over-Week",
}

CHART_TITLES = {
    "commits": "Commits distribution",
    "additions": "Lines added distribution",
    "contributors": "Contributors distribution",
}


def fmt_int(n: int) -> str:
    return f"{int(n):,}"


def fmt_pct(p: float, digits: int = 1) -> str:
    return f"{p:.{digits}f}%"


def trunc(s: str, max_len: int) -> str:
    if len(s) <= max_len:
        return s
    if max_len <= 1:
        return s[:max_len]
    return s[: max_len - 1] + "…"


def bar(value: int, max_value: int, width: int = 40) -> str:
    if max_value <= 0:
        filled = 0
    else:
        filled = int(round((value / max_value) * width))
    filled = max(0, min(width, filled))
    return "#" * filled


def fmt_range(r: DateRange) -> str:
    if r.is_empty:
        return "n/a"
    return f"{r.start:%Y-%m-%d} to {r.end:%Y-%m-%d}"


def _group_value(g: RankedGroup, metric: str) -> int:
    if metric == "additions":
        return g.total_additions
    if metric == "contributors":
        return g.contributor_count
    return g.total_commits


def render_analysis(analysis: RepositoryAnalysis, *, top_n: int = 5) -> str:
    lines: list[str] = []
    lines.append(BANNER)
    lines.append("")
    lines.append(f"Repository:     {analysis.repo_name}")
    lines.append(f"Commits:        {fmt_int(analysis.total_commits)}")
    lines.append(f"Contributors:   {fmt_int(analysis.total_contributors)}")
    lines.append(f"Date range:     {fmt_range(analysis.date_range)}")
    if analysis.skipped:
        lines.append(f"Skipped:        {fmt_int(analysis.skipped)} commits could not be read")
    lines.append("")

    lines.append("Vendor/Community breakdown")
    lines.append("-" * 110)
    lines.append(
        f"{'Category':20} {'Commits':>10} {'% Commits':>10} {'Contributors':>13} {'% Contrib':>10} "
        f"{'Added':>14} {'Deleted':>14} {'Net':>12}"
    )
    lines.append("-" * 110)
    for name in sorted_categories(analysis.metrics, "commits"):
        m = analysis.metrics[name]
        if m.total_commits == 0:
            continue
        lines.append(
            f"{trunc(name, 20):20} {fmt_int(m.total_commits):>10} "
            f"{fmt_pct(analysis.vendor_percentage(name, 'commits')):>10} "
            f"{fmt_int(m.contributor_count):>13} "
            f"{fmt_pct(analysis.vendor_percentage(name, 'contributors')):>10} "
            f"{'+' + fmt_int(m.total_additions):>14} {'-' + fmt_int(m.total_deletions):>14} "
            f"{fmt_int(m.net_changes):>12}"
        )
    lines.append("")

    for metric in RANK_METRICS:
        groups = rank_groups(analysis.metrics, metric, top_n, hide_empty=True)
        lines.append(CHART_TITLES[metric])
        lines.append("-" * 72)
        values = [_group_value(g, metric) for g in groups]
        max_value = max(values, default=0)
        for g, v in zip(groups, values):
            lines.append(f"{trunc(g.name, 20):20} {bar(v, max_value):40} {fmt_int(v):>10}")
        if not groups:
            lines.append("(no commits)")
        lines.append("")

    lines.append("Key insights")
    lines.append("-" * 72)
    ranked = [n for n in sorted_categories(analysis.metrics, "commits") if analysis.metrics[n].total_commits > 0]
    if ranked:
        top = ranked[0]
        lines.append(
            f"- {top} leads with {fmt_pct(analysis.vendor_percentage(top, 'commits'))} of commits "
            f"({fmt_int(analysis.metrics[top].total_commits)} commits)"
        )
    community = analysis.metrics.get(COMMUNITY)
    if community is not None:
        lines.append(
            f"- Community contributes {fmt_pct(analysis.vendor_percentage(COMMUNITY, 'commits'))} of commits "
            f"with {fmt_int(community.contributor_count)} contributors"
        )
    changed = sum(m.total_additions + m.total_deletions for m in analysis.metrics.values())
    avg = changed // analysis.total_commits if analysis.total_commits else 0
    lines.append(f"- Average commit size: {fmt_int(avg)} lines changed")
    return "\n".join(lines)


def render_timeline(timeline: TimelineAnalysis, *, max_columns: int = 5) -> str:
    lines: list[str] = []
    lines.append(BANNER)
    lines.append("")
    lines.append(f"Repository:     {timeline.repo_name}")
    lines.append(f"Breakdown:      {BREAKDOWN_LABELS.get(timeline.granularity, timeline.granularity)}")
    lines.append(f"Periods:        {fmt_int(len(timeline.periods))}")
    lines.append(f"Date range:     {fmt_range(timeline.date_range)}")
    if timeline.skipped:
        lines.append(f"Skipped:        {fmt_int(timeline.skipped)} commits could not be read")
    lines.append("")

    columns = timeline_columns(timeline, max_columns)
    header = f"{'Period':15} {'Total':>10}" + "".join(f"  {trunc(c, 14):>14}" for c in columns)
    lines.append(header)
    lines.append("-" * len(header))
    for period in timeline.periods:
        row = f"{period.key:15} {fmt_int(period.total_commits):>10}"
        for c in columns:
            if c == OTHERS:
                commits, pct = others_commits(period, columns)
            else:
                m = period.metrics.get(c)
                commits = m.total_commits if m is not None else 0
                pct = period.vendor_percentage(c, "commits")
            cell = f"{fmt_int(commits)} ({pct:.0f}%)" if commits else "-"
            row += f"  {cell:>14}"
        lines.append(row)
    lines.append("")

    lines.append("Key trends")
    lines.append("-" * 72)
    if not timeline.periods:
        lines.append("No data available")
        return "\n".join(lines)

    first = timeline.periods[0]
    last = timeline.periods[-1]
    lines.append(f"- Period range: {first.key} -> {last.key}")
    delta = last.total_commits - first.total_commits
    lines.append(f"- Commits: {fmt_int(first.total_commits)} -> {fmt_int(last.total_commits)} ({delta:+d})")
    if COMMUNITY in first.metrics or COMMUNITY in last.metrics:
        first_pct = first.vendor_percentage(COMMUNITY, "commits")
        last_pct = last.vendor_percentage(COMMUNITY, "commits")
        arrow = "up" if last_pct > first_pct else ("down" if last_pct < first_pct else "flat")
        lines.append(f"- Community share: {fmt_pct(first_pct)} -> {fmt_pct(last_pct)} ({arrow})")
        first_c = first.metrics[COMMUNITY].contributor_count if COMMUNITY in first.metrics else 0
        last_c = last.metrics[COMMUNITY].contributor_count if COMMUNITY in last.metrics else 0
        lines.append(f"  Contributors: {first_c} -> {last_c}")
    return "\n".join(lines)

from __future__ import annotations

import dataclasses
import datetime as dt

COMMUNITY = "community"
OTHERS = "others"

METRICS = ("commits", "additions", "deletions", "contributors")


@dataclasses.dataclass(frozen=True)
class CommitRecord:
    sha: str
    author_name: str
    author_email: str
    timestamp: dt.datetime
    additions: int = 0
    deletions: int = 0
    message: str = ""

    @property
    def changed(self) -> int:
        return self.additions + self.deletions

    @property
    def author_id(self) -> str:
        return self.author_email or self.author_name


@dataclasses.dataclass
class ContributorRecord:
    email: str
    name: str = ""
    commits: int = 0


@dataclasses.dataclass
class CategoryMetrics:
    name: str
    total_commits: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    contributors: set[str] = dataclasses.field(default_factory=set)
    commits_by_month: dict[str, int] = dataclasses.field(default_factory=dict)  # YYYY-MM -> count
    additions_by_month: dict[str, int] = dataclasses.field(default_factory=dict)
    deletions_by_month: dict[str, int] = dataclasses.field(default_factory=dict)

    @property
    def contributor_count(self) -> int:
        return len(self.contributors)

    @property
    def net_changes(self) -> int:
        return self.total_additions - self.total_deletions

    @property
    def avg_commit_size(self) -> float:
        if self.total_commits == 0:
            return 0.0
        return (self.total_additions + self.total_deletions) / self.total_commits

    def value(self, metric: str) -> int:
        if metric == "commits":
            return self.total_commits
        if metric == "additions":
            return self.total_additions
        if metric == "deletions":
            return self.total_deletions
        if metric == "contributors":
            return self.contributor_count
        raise ValueError(f"Unknown metric: {metric!r} (expected one of {', '.join(METRICS)})")


@dataclasses.dataclass(frozen=True)
class DateRange:
    start: dt.datetime | None = None
    end: dt.datetime | None = None

    @property
    def is_empty(self) -> bool:
        return self.start is None or self.end is None

    def widen(self, ts: dt.datetime) -> DateRange:
        start = ts if self.start is None or ts < self.start else self.start
        end = ts if self.end is None or ts > self.end else self.end
        return DateRange(start=start, end=end)


def as_utc(ts: dt.datetime) -> dt.datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=dt.timezone.utc)
    return ts.astimezone(dt.timezone.utc)


def _share(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return part / total * 100


@dataclasses.dataclass
class RepositoryAnalysis:
    repo_name: str
    total_commits: int
    total_contributors: int
    date_range: DateRange
    metrics: dict[str, CategoryMetrics]
    skipped: int = 0

    def vendor_percentage(self, category: str, metric: str) -> float:
        m = self.metrics.get(category)
        if m is None:
            return 0.0
        if metric == "commits":
            return _share(m.total_commits, self.total_commits)
        if metric == "additions":
            return _share(m.total_additions, sum(v.total_additions for v in self.metrics.values()))
        if metric == "contributors":
            return _share(m.contributor_count, self.total_contributors)
        return 0.0


@dataclasses.dataclass
class PeriodBucket:
    key: str
    start: dt.datetime
    end: dt.datetime  # inclusive, last second of the period
    metrics: dict[str, CategoryMetrics]
    total_commits: int = 0

    def vendor_percentage(self, category: str, metric: str) -> float:
        """Share of `category` within this period only, in [0, 100]."""
        m = self.metrics.get(category)
        if m is None or self.total_commits == 0:
            return 0.0
        if metric == "commits":
            return _share(m.total_commits, self.total_commits)
        if metric == "additions":
            return _share(m.total_additions, sum(v.total_additions for v in self.metrics.values()))
        if metric == "contributors":
            return _share(m.contributor_count, sum(v.contributor_count for v in self.metrics.values()))
        return 0.0


@dataclasses.dataclass
class TimelineAnalysis:
    repo_name: str
    granularity: str
    periods: list[PeriodBucket]
    date_range: DateRange
    skipped: int = 0


@dataclasses.dataclass
class RankedGroup:
    name: str
    total_commits: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    contributors: set[str] = dataclasses.field(default_factory=set)
    is_grouped: bool = False  # True only for the synthetic "others" row

    @property
    def contributor_count(self) -> int:
        return len(self.contributors)

    @property
    def net_changes(self) -> int:
        return self.total_additions - self.total_deletions

    @classmethod
    def from_metrics(cls, m: CategoryMetrics) -> RankedGroup:
        return cls(
            name=m.name,
            total_commits=m.total_commits,
            total_additions=m.total_additions,
            total_deletions=m.total_deletions,
            contributors=set(m.contributors),
        )

from __future__ import annotations

import datetime as dt

from .analysis_aggregate import fold_records
from .identity import VendorClassifier
from .models import CommitRecord, DateRange, PeriodBucket, TimelineAnalysis, as_utc

GRANULARITIES = ("year", "quarter", "month", "week")

_ONE_SECOND = dt.timedelta(seconds=1)


def parse_granularity(value: str) -> str:
    g = (value or "").strip().lower()
    if g not in GRANULARITIES:
        raise ValueError(f"Invalid breakdown: {value!r} (expected one of: {', '.join(GRANULARITIES)})")
    return g


def parse_date(value: str) -> dt.datetime:
    """YYYY-MM-DD -> midnight UTC."""
    s = (value or "").strip()
    try:
        d = dt.date.fromisoformat(s)
    except ValueError:
        raise ValueError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None
    return dt.datetime(d.year, d.month, d.day, tzinfo=dt.timezone.utc)


def end_of_day(ts: dt.datetime) -> dt.datetime:
    return ts.replace(hour=0, minute=0, second=0, microsecond=0) + dt.timedelta(days=1) - _ONE_SECOND


def period_key(ts: dt.datetime, granularity: str) -> str:
    ts = as_utc(ts)
    if granularity == "year":
        return f"{ts.year:04d}"
    if granularity == "quarter":
        return f"{ts.year:04d}-Q{(ts.month - 1) // 3 + 1}"
    if granularity == "month":
        return f"{ts.year:04d}-{ts.month:02d}"
    if granularity == "week":
        iso_year, iso_week, _ = ts.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    raise ValueError(f"Invalid breakdown: {granularity!r}")


def _first_of_month(year: int, month: int) -> dt.datetime:
    # month may be 13 (= January of the next year)
    if month > 12:
        year, month = year + 1, month - 12
    return dt.datetime(year, month, 1, tzinfo=dt.timezone.utc)


def period_range(key: str, granularity: str) -> tuple[dt.datetime, dt.datetime]:
    """
    Inverse of `period_key`: (first second, last second) of the period, in UTC.

    Week keys use the ISO-8601 week-numbering year, so "2025-W01" starts on
    Monday 2024-12-30.
    """
    try:
        if granularity == "year":
            year = int(key)
            return _first_of_month(year, 1), _first_of_month(year + 1, 1) - _ONE_SECOND
        if granularity == "quarter":
            y, q = key.split("-Q", 1)
            year, quarter = int(y), int(q)
            if not 1 <= quarter <= 4:
                raise ValueError(key)
            first_month = (quarter - 1) * 3 + 1
            return _first_of_month(year, first_month), _first_of_month(year, first_month + 3) - _ONE_SECOND
        if granularity == "month":
            y, m = key.split("-", 1)
            year, month = int(y), int(m)
            if not 1 <= month <= 12:
                raise ValueError(key)
            return _first_of_month(year, month), _first_of_month(year, month + 1) - _ONE_SECOND
        if granularity == "week":
            # ISO-8601 weeks: week 1 holds the year's first Thursday, not its first Monday.
            y, w = key.split("-W", 1)
            monday = dt.date.fromisocalendar(int(y), int(w), 1)
            start = dt.datetime(monday.year, monday.month, monday.day, tzinfo=dt.timezone.utc)
            return start, start + dt.timedelta(days=7) - _ONE_SECOND
    except ValueError:
        raise ValueError(f"Invalid {granularity} period key: {key!r}") from None
    raise ValueError(f"Invalid breakdown: {granularity!r}")


def analyze_timeline(
    commits: list[CommitRecord],
    classifier: VendorClassifier,
    repo_name: str,
    granularity: str,
    *,
    skipped: int = 0,
) -> TimelineAnalysis:
    granularity = parse_granularity(granularity)

    by_period: dict[str, list[CommitRecord]] = {}
    date_range = DateRange()
    for c in commits:
        by_period.setdefault(period_key(c.timestamp, granularity), []).append(c)
        date_range = date_range.widen(c.timestamp)

    periods: list[PeriodBucket] = []
    for key in sorted(by_period):
        fold = fold_records(by_period[key], classifier)
        start, end = period_range(key, granularity)
        periods.append(PeriodBucket(key=key, start=start, end=end, metrics=fold.metrics, total_commits=fold.commits))

    return TimelineAnalysis(
        repo_name=repo_name,
        granularity=granularity,
        periods=periods,
        date_range=date_range,
        skipped=skipped,
    )

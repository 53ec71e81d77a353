from __future__ import annotations

import dataclasses
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Generic, Optional, Sequence, TypeVar

R = TypeVar("R")
T = TypeVar("T")

DEFAULT_WORKERS = 4


@dataclasses.dataclass
class PoolResult(Generic[T]):
    items: list[T]
    skipped: int = 0


def _safe_extract(extract: Callable[[R], Optional[T]], record: R) -> tuple[Optional[T], bool]:
    try:
        return extract(record), True
    except Exception:
        return None, False


def process_ordered(
    records: Sequence[R],
    extract: Callable[[R], Optional[T]],
    workers: int = DEFAULT_WORKERS,
    progress: Callable[[int, int], None] | None = None,
) -> PoolResult[T]:
    """
    Run `extract` over `records` on a fixed-size thread pool and return the
    successful results in input order.

    A record is dropped (and counted in `skipped`) when `extract` raises or
    returns None; other records are unaffected. `progress(done, total)` is
    called from the calling thread as results arrive.
    """
    if workers <= 0:
        workers = DEFAULT_WORKERS
    total = len(records)
    if total == 0:
        return PoolResult(items=[], skipped=0)

    slots: list[Optional[T]] = [None] * total
    with ThreadPoolExecutor(max_workers=min(workers, total)) as ex:
        futs = {ex.submit(_safe_extract, extract, record): i for i, record in enumerate(records)}
        for done, fut in enumerate(as_completed(futs), start=1):
            value, ok = fut.result()
            if ok and value is not None:
                slots[futs[fut]] = value
            if progress is not None:
                progress(done, total)

    items = [v for v in slots if v is not None]
    return PoolResult(items=items, skipped=total - len(items))

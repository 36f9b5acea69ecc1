from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def run_pool(items: Sequence[T], concurrency: int, worker: Callable[[T], R]) -> list[R]:
    """
    Run ``worker`` over ``items`` with at most ``concurrency`` in flight.

    Results come back in input order. ``worker`` is expected to return its
    failures as values; an exception it raises propagates to the caller.
    """
    items = list(items)
    if not items:
        return []
    workers = max(1, min(concurrency, len(items)))
    if workers == 1:
        return [worker(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="crawl") as executor:
        return list(executor.map(worker, items))

"""
Queue Configuration - rq queue with retry support
Long backfills and ad-hoc crawls are handed to a worker process.
"""
from functools import lru_cache

from redis import Redis
from rq import Queue, Retry
from sponsorwatch.core.settings import get_settings


@lru_cache
def get_redis() -> Redis:
    return Redis.from_url(get_settings().redis_url)


@lru_cache
def get_queue() -> Queue:
    return Queue(get_settings().rq_queue_name, connection=get_redis())


def get_retry_config(max_retries: int = 3) -> Retry:
    """
    Default retry configuration with exponential backoff.
    Intervals: 30s, 60s, 120s
    """
    return Retry(max=max_retries, interval=[30, 60, 120])


RETRY_DEFAULT = get_retry_config(3)
# Backfills checkpoint after each page, so a retry resumes rather than restarts
RETRY_BACKFILL = get_retry_config(2)


def enqueue_crawl(func, *args, job_timeout=900, queue=None, **kwargs):
    """Enqueue a feed or single-video crawl with retry"""
    return (queue or get_queue()).enqueue(
        func, *args,
        job_timeout=job_timeout,
        retry=RETRY_DEFAULT,
        **kwargs
    )


def enqueue_backfill(func, *args, job_timeout=6 * 3600, queue=None, **kwargs):
    """Enqueue a channel backfill with retry"""
    return (queue or get_queue()).enqueue(
        func, *args,
        job_timeout=job_timeout,
        retry=RETRY_BACKFILL,
        **kwargs
    )

"""
rq job entry points.

Jobs take plain identifiers so they pickle cleanly, build their own deps and
raise on a fatal crawl error so rq's retry policy applies.
"""
import logging

from sponsorwatch.core.channels import resolve_profile
from sponsorwatch.core.errors import InvalidInputError
from sponsorwatch.workers.deps import build_deps
from sponsorwatch.workers.orchestrator import backfill_channel, crawl_feed, crawl_video

logger = logging.getLogger(__name__)


def _deps_for(channel_id: str):
    profile = resolve_profile(channel_id)
    if profile is None:
        raise InvalidInputError(f"Unknown channel: {channel_id}")
    return build_deps(profile)


def crawl_video_job(channel_id: str, video_id: str, send_notifications: bool = False) -> dict:
    logger.info(f"[jobs] crawl_video_job {channel_id} {video_id}")
    return crawl_video(_deps_for(channel_id), video_id, send_notifications).unwrap().model_dump()


def crawl_feed_job(channel_id: str) -> dict:
    logger.info(f"[jobs] crawl_feed_job {channel_id}")
    return crawl_feed(_deps_for(channel_id), channel_id).unwrap().model_dump()


def backfill_channel_job(channel_id: str, limit="all", concurrency: int = 3) -> dict:
    logger.info(f"[jobs] backfill_channel_job {channel_id} limit={limit}")
    return backfill_channel(_deps_for(channel_id), limit, channel_id, concurrency).unwrap().model_dump()

"""
Scheduler - Live feed polling across configured channels
Each tick crawls every channel's feed independently; one failing channel
never stops the others.
"""
import logging
import time
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.schema import CreateSchema

from sponsorwatch.core.channels import CHANNEL_PROFILES, ChannelProfile, resolve_profile
from sponsorwatch.core.logging import setup_logging
from sponsorwatch.core.settings import Settings, get_settings
from sponsorwatch.db.base import Base
from sponsorwatch.workers.deps import CrawlDeps, build_deps
from sponsorwatch.workers.orchestrator import crawl_feed
from sponsorwatch.workers.pool import run_pool

import sponsorwatch.models  # noqa: F401  registers tables on Base.metadata

logger = logging.getLogger(__name__)


def init_db(engine: Engine, schema: Optional[str] = None):
    """Create the channel schema and tables if they don't exist"""
    logger.info(f"[scheduler] Initializing database tables (schema={schema or 'default'})")
    with engine.begin() as conn:
        if schema and conn.dialect.name != "sqlite":
            conn.execute(CreateSchema(schema, if_not_exists=True))
            conn = conn.execution_options(schema_translate_map={None: schema})
        Base.metadata.create_all(bind=conn)


def select_profiles(settings: Settings) -> list[ChannelProfile]:
    channel_ids = settings.configured_channel_ids()
    if not channel_ids:
        return list(CHANNEL_PROFILES.values())

    profiles = []
    for channel_id in channel_ids:
        profile = resolve_profile(channel_id)
        if profile is None:
            logger.warning(f"[scheduler] Unknown channel id, skipping: {channel_id}")
            continue
        if profile not in profiles:
            profiles.append(profile)
    return profiles


def _tick_channel(deps: CrawlDeps) -> bool:
    try:
        result = crawl_feed(deps)
    except Exception:
        logger.exception(f"[{deps.profile.name}] Error polling")
        return False

    if not result.is_ok:
        logger.error(f"[{deps.profile.name}] Feed crawl failed: {result.error}")
        return False

    summary = result.value
    logger.info(
        f"[{deps.profile.name}] Feed crawled: {summary.success_count} ok, {summary.failure_count} failed",
        extra={"extra_fields": {"channel_id": summary.channel_id, "failures": summary.failures}},
    )
    return True


def tick(channel_deps: list[CrawlDeps]) -> int:
    """
    Poll every channel's feed once, channels in parallel.
    Returns the number of channels whose feed crawl succeeded.
    """
    results = run_pool(channel_deps, len(channel_deps), _tick_channel)
    return sum(1 for ok in results if ok)


def run(settings: Optional[Settings] = None):
    settings = settings or get_settings()
    profiles = select_profiles(settings)
    if not profiles:
        logger.error("[scheduler] No known channels configured, exiting")
        return

    from sponsorwatch.db.session import engine

    # Wait for DB to be ready
    for attempt in range(10):
        try:
            for profile in profiles:
                init_db(engine, profile.db_schema)
            break
        except Exception as e:
            logger.warning(f"[scheduler] DB not ready (attempt {attempt + 1}/10): {e}")
            time.sleep(3)

    channel_deps = [build_deps(profile, settings, engine) for profile in profiles]
    names = ", ".join(p.name for p in profiles)

    if settings.crawler_run_once:
        logger.info(f"[scheduler] Single pass over: {names}")
        tick(channel_deps)
        return

    logger.info(f"[scheduler] Started for {names}. Polling every {settings.poll_interval_seconds}s")
    while True:
        tick(channel_deps)
        time.sleep(settings.poll_interval_seconds)


if __name__ == "__main__":
    _settings = get_settings()
    setup_logging(level=_settings.log_level, structured=_settings.log_structured)
    run(_settings)

"""
Crawl dependencies for one channel, built once at the entry point.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from sponsorwatch.core.channels import ChannelProfile
from sponsorwatch.core.settings import Settings, get_settings
from sponsorwatch.services.checkpoints import CheckpointStore
from sponsorwatch.services.feed_reader import FeedReader
from sponsorwatch.services.http import JsonHttpClient
from sponsorwatch.services.intelligence import Intelligence
from sponsorwatch.services.notifier import DiscordNotifier, NotificationDispatcher, TodoistNotifier
from sponsorwatch.services.social_metrics import SocialMetricsClient
from sponsorwatch.services.youtube_api import YouTubeApiClient


@dataclass
class CrawlDeps:
    profile: ChannelProfile
    session_factory: sessionmaker
    youtube: YouTubeApiClient
    feed: FeedReader
    social: SocialMetricsClient
    intelligence: Intelligence
    checkpoints: CheckpointStore
    dispatcher: NotificationDispatcher
    max_comments_per_video: int = 100
    max_comment_classifications: int = 100
    concurrency: int = 3


def build_deps(
    profile: ChannelProfile,
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
) -> CrawlDeps:
    from sponsorwatch.db.session import engine as default_engine, make_session_factory

    settings = settings or get_settings()
    session_factory = make_session_factory(engine or default_engine, profile.db_schema)

    def http(base_delay: Optional[float] = None) -> JsonHttpClient:
        return JsonHttpClient(
            timeout=settings.http_timeout_seconds,
            attempts=settings.http_retry_attempts,
            base_delay=settings.http_retry_base_delay if base_delay is None else base_delay,
        )

    return CrawlDeps(
        profile=profile,
        session_factory=session_factory,
        youtube=YouTubeApiClient(settings.yt_api_key, http=http()),
        feed=FeedReader(http=http()),
        social=SocialMetricsClient(settings.x_api_key, http=http()),
        intelligence=Intelligence(api_key=settings.groq_api_key, model=settings.groq_model),
        checkpoints=CheckpointStore(session_factory),
        dispatcher=NotificationDispatcher(
            DiscordNotifier(settings.discord_webhook_url, http=http(base_delay=0.5)),
            TodoistNotifier(settings.todoist_api_token, http=http(base_delay=0.5)),
        ),
        max_comments_per_video=settings.max_comments_per_video,
        max_comment_classifications=settings.max_comment_classifications_per_crawl,
        concurrency=settings.crawl_concurrency,
    )

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = Field(default="dev", alias="APP_ENV")

    database_url: str = Field(default="sqlite:///./sponsorwatch.db", alias="DATABASE_URL")
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    rq_queue_name: str = Field(default="crawl", alias="RQ_QUEUE_NAME")

    # Credentials. Blank values are treated as unset.
    yt_api_key: str | None = Field(default=None, alias="YT_API_KEY")
    x_api_key: str | None = Field(default=None, alias="X_API_KEY")
    groq_api_key: str | None = Field(default=None, alias="GROQ_API_KEY")
    groq_model: str = Field(default="llama-3.3-70b-versatile", alias="GROQ_MODEL")
    discord_webhook_url: str | None = Field(default=None, alias="DISCORD_WEBHOOK_URL")
    todoist_api_token: str | None = Field(default=None, alias="TODOIST_API_TOKEN")

    # Live crawler
    crawler_channel_ids: str = Field(default="", alias="CRAWLER_CHANNEL_IDS")
    poll_interval_seconds: int = Field(default=300, alias="POLL_INTERVAL_SECONDS")
    crawler_run_once: bool = Field(default=False, alias="CRAWLER_RUN_ONCE")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_structured: bool = Field(default=True, alias="LOG_STRUCTURED")

    # Crawl limits
    max_comments_per_video: int = Field(default=100, alias="MAX_COMMENTS_PER_VIDEO")
    max_comment_classifications_per_crawl: int = Field(
        default=100, alias="MAX_COMMENT_CLASSIFICATIONS_PER_CRAWL"
    )
    crawl_concurrency: int = Field(default=3, alias="CRAWL_CONCURRENCY")

    # Outbound HTTP
    http_timeout_seconds: float = Field(default=15.0, alias="HTTP_TIMEOUT_SECONDS")
    http_retry_attempts: int = Field(default=3, alias="HTTP_RETRY_ATTEMPTS")
    http_retry_base_delay: float = Field(default=0.3, alias="HTTP_RETRY_BASE_DELAY")

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True

    @field_validator(
        "yt_api_key",
        "x_api_key",
        "groq_api_key",
        "discord_webhook_url",
        "todoist_api_token",
        mode="before",
    )
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    def configured_channel_ids(self) -> list[str]:
        """Comma separated CRAWLER_CHANNEL_IDS, trimmed and deduplicated in order."""
        seen: list[str] = []
        for raw in self.crawler_channel_ids.split(","):
            channel_id = raw.strip()
            if channel_id and channel_id not in seen:
                seen.append(channel_id)
        return seen


@lru_cache
def get_settings() -> Settings:
    return Settings()

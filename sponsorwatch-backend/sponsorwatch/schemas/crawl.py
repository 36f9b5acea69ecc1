from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field

class StageFailure(BaseModel):
    stage: str
    message: str

class CrawlSummary(BaseModel):
    video_id: str
    is_new_video: bool
    comment_count_fetched: int = 0
    comment_fetch_limited: bool = False
    comments_inserted: int = 0
    comments_updated: int = 0
    comments_deleted: int = 0
    comments_processed: int = 0
    notifications_inserted: int = 0
    stage_failures: list[StageFailure] = Field(default_factory=list)

class FeedSummary(BaseModel):
    channel_id: str
    crawled_video_ids: list[str] = Field(default_factory=list)
    success_count: int = 0
    failure_count: int = 0
    failures: list[str] = Field(default_factory=list)

class BackfillFailure(BaseModel):
    video_id: str
    message: str

class BackfillSummary(BaseModel):
    channel_id: str
    crawled: int = 0
    failure_count: int = 0
    failures: list[BackfillFailure] = Field(default_factory=list)
    remaining_cursor: str | None = None

class CheckpointOut(BaseModel):
    state_key: str
    cursor: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime

    class Config:
        from_attributes = True

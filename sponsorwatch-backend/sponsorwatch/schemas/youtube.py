from datetime import datetime
from pydantic import BaseModel, Field

class VideoSnapshot(BaseModel):
    video_id: str
    title: str
    description: str = ""
    thumbnail_url: str = ""
    published_at: datetime
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0

class CommentSnapshot(BaseModel):
    comment_id: str
    video_id: str
    text: str
    author: str = ""
    published_at: datetime
    like_count: int = 0
    reply_count: int = 0

class CommentPage(BaseModel):
    comments: list[CommentSnapshot] = Field(default_factory=list)
    is_limited: bool = False
    max_comments: int

class PlaylistPage(BaseModel):
    video_ids: list[str] = Field(default_factory=list)
    next_page_token: str | None = None

from pydantic import BaseModel

class ParsedPostUrl(BaseModel):
    post_id: str
    canonical_url: str

class PostMetrics(BaseModel):
    view_count: int | None = None
    like_count: int | None = None
    repost_count: int | None = None
    reply_count: int | None = None

class LinkedPostMetrics(BaseModel):
    video_id: str
    x_url: str
    x_views: int | None = None
    x_likes: int | None = None
    x_reposts: int | None = None
    x_comments: int | None = None

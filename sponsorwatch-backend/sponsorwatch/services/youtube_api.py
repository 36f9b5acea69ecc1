"""
YouTube Data API v3 client.

Every public method returns a Result; expected failures never raise.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sponsorwatch.core.errors import ExternalError, MissingCredentialsError, NotFoundError
from sponsorwatch.core.result import Err, Ok, Result
from sponsorwatch.schemas.youtube import CommentPage, CommentSnapshot, PlaylistPage, VideoSnapshot
from sponsorwatch.services.http import HttpNotFound, HttpStatusError, JsonHttpClient

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
COMMENT_PAGE_SIZE = 100
PLAYLIST_PAGE_SIZE = 50

_THUMBNAIL_PREFERENCE = ("maxres", "high", "medium", "default")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_count(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def pick_thumbnail(thumbnails: Optional[dict]) -> str:
    thumbnails = thumbnails or {}
    for size in _THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""


def _is_comments_disabled(error: HttpStatusError) -> bool:
    text = f"{error} {error.body}"
    return "commentsDisabled" in text or "has disabled comments" in text


class YouTubeApiClient:
    def __init__(self, api_key: Optional[str], http: Optional[JsonHttpClient] = None, base_url: str = YOUTUBE_API_BASE_URL):
        self.api_key = (api_key or "").strip() or None
        self.http = http or JsonHttpClient()
        self.base_url = base_url.rstrip("/")

    def _get(self, path: str, params: dict) -> Any:
        query = {key: value for key, value in params.items() if value is not None}
        query["key"] = self.api_key
        return self.http.get_json(f"{self.base_url}/{path}", params=query)

    def _missing_key(self) -> Err:
        return Err(MissingCredentialsError("YT_API_KEY is required"))

    def get_video_by_id(self, video_id: str) -> Result[VideoSnapshot]:
        if not self.api_key:
            return self._missing_key()
        try:
            payload = self._get("videos", {"id": video_id, "part": "snippet,statistics", "maxResults": 1})
        except HttpNotFound:
            return Err(NotFoundError(f"Video not found: {video_id}"))
        except HttpStatusError as e:
            return Err(ExternalError(f"Failed to fetch video {video_id}: {e}"))

        items = payload.get("items") or []
        if not items:
            return Err(NotFoundError(f"Video not found: {video_id}"))

        item = items[0]
        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}
        return Ok(VideoSnapshot(
            video_id=item.get("id") or video_id,
            title=snippet.get("title") or "",
            description=snippet.get("description") or "",
            thumbnail_url=pick_thumbnail(snippet.get("thumbnails")),
            published_at=parse_timestamp(snippet.get("publishedAt")),
            view_count=parse_count(statistics.get("viewCount")),
            like_count=parse_count(statistics.get("likeCount")),
            comment_count=parse_count(statistics.get("commentCount")),
        ))

    def list_top_level_comments(self, video_id: str, max_comments: int = 100) -> Result[CommentPage]:
        """
        Newest-first top-level comments, capped at ``max_comments``.

        ``is_limited`` is set when the cap cut the listing short, so callers
        know the result is not the full upstream set.
        """
        if not self.api_key:
            return self._missing_key()

        comments: list[CommentSnapshot] = []
        is_limited = False
        page_token: Optional[str] = None

        while True:
            try:
                payload = self._get("commentThreads", {
                    "videoId": video_id,
                    "part": "snippet",
                    "maxResults": COMMENT_PAGE_SIZE,
                    "order": "time",
                    "textFormat": "plainText",
                    "pageToken": page_token,
                })
            except HttpStatusError as e:
                if _is_comments_disabled(e):
                    logger.info(f"[youtube] Comments disabled for {video_id}")
                    return Ok(CommentPage(comments=[], is_limited=False, max_comments=max_comments))
                return Err(ExternalError(f"Failed to fetch comments for {video_id}: {e}"))

            page = []
            for item in payload.get("items") or []:
                top = ((item.get("snippet") or {}).get("topLevelComment")) or {}
                snippet = top.get("snippet") or {}
                comment_id = top.get("id") or ""
                if not comment_id or snippet.get("videoId") != video_id:
                    continue
                page.append(CommentSnapshot(
                    comment_id=comment_id,
                    video_id=video_id,
                    text=snippet.get("textDisplay") or "",
                    author=snippet.get("authorDisplayName") or "",
                    published_at=parse_timestamp(snippet.get("publishedAt")),
                    like_count=parse_count(snippet.get("likeCount")),
                    reply_count=parse_count((item.get("snippet") or {}).get("totalReplyCount")),
                ))

            room = max_comments - len(comments)
            comments.extend(page[:room] if room > 0 else [])

            # Reaching the cap counts as truncated even on an exact fit
            if len(comments) >= max_comments:
                is_limited = True
                logger.info(f"[youtube] Comment limit {max_comments} reached for {video_id}")
                break

            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        return Ok(CommentPage(comments=comments, is_limited=is_limited, max_comments=max_comments))

    def get_uploads_playlist_id(self, channel_id: str) -> Result[str]:
        if not self.api_key:
            return self._missing_key()
        try:
            payload = self._get("channels", {"id": channel_id, "part": "contentDetails", "maxResults": 1})
        except HttpNotFound:
            return Err(NotFoundError(f"Channel not found: {channel_id}"))
        except HttpStatusError as e:
            return Err(ExternalError(f"Failed to fetch channel {channel_id}: {e}"))

        items = payload.get("items") or []
        if not items:
            return Err(NotFoundError(f"Channel not found: {channel_id}"))
        uploads = ((items[0].get("contentDetails") or {}).get("relatedPlaylists") or {}).get("uploads")
        if not uploads:
            return Err(NotFoundError(f"Uploads playlist not found for channel {channel_id}"))
        return Ok(uploads)

    def list_playlist_video_ids(self, playlist_id: str, page_token: Optional[str] = None) -> Result[PlaylistPage]:
        if not self.api_key:
            return self._missing_key()
        try:
            payload = self._get("playlistItems", {
                "playlistId": playlist_id,
                "part": "contentDetails",
                "maxResults": PLAYLIST_PAGE_SIZE,
                "pageToken": page_token,
            })
        except HttpNotFound:
            return Err(NotFoundError(f"Playlist not found: {playlist_id}"))
        except HttpStatusError as e:
            return Err(ExternalError(f"Failed to fetch playlist {playlist_id}: {e}"))

        video_ids = []
        for item in payload.get("items") or []:
            video_id = (item.get("contentDetails") or {}).get("videoId")
            if video_id:
                video_ids.append(video_id)
        return Ok(PlaylistPage(video_ids=video_ids, next_page_token=payload.get("nextPageToken") or None))

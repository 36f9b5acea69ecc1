import feedparser
import logging
from typing import Optional

from sponsorwatch.core.errors import ExternalError
from sponsorwatch.core.result import Err, Ok, Result
from sponsorwatch.services.http import HttpStatusError, JsonHttpClient

logger = logging.getLogger(__name__)

def channel_feed_url(channel_id: str) -> str:
    return f"https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}"


def parse_feed_video_ids(xml: str) -> list[str]:
    """Video ids from an Atom feed body, deduplicated in first-seen order."""
    feed = feedparser.parse(xml)
    video_ids: list[str] = []
    for entry in feed.entries:
        video_id = (getattr(entry, "yt_videoid", None) or "").strip()
        if video_id and video_id not in video_ids:
            video_ids.append(video_id)
    return video_ids


class FeedReader:
    def __init__(self, http: Optional[JsonHttpClient] = None):
        self.http = http or JsonHttpClient()

    def fetch_feed_video_ids(self, channel_id: str) -> Result[list[str]]:
        url = channel_feed_url(channel_id)
        try:
            xml = self.http.get_text(url)
        except HttpStatusError as e:
            return Err(ExternalError(f"Failed to fetch feed for {channel_id}: {e}"))

        video_ids = parse_feed_video_ids(xml)
        logger.info(f"[feed] {channel_id}: {len(video_ids)} videos in feed")
        return Ok(video_ids)

"""
X (Twitter) post metrics for videos that link a promo post.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional
from urllib.parse import urlparse

from sponsorwatch.core.errors import ExternalError, MissingCredentialsError
from sponsorwatch.core.result import Err, Ok, Result
from sponsorwatch.schemas.social import ParsedPostUrl, PostMetrics
from sponsorwatch.services.http import HttpStatusError, JsonHttpClient

logger = logging.getLogger(__name__)

X_API_BASE_URL = "https://api.x.com/2"
X_POST_HOSTS = {"x.com", "www.x.com", "twitter.com", "www.twitter.com"}
_STATUS_PATH = re.compile(r"/status/(\d+)")

VIEW_KEYS = ("impression_count", "impressionCount", "view_count", "viewCount")
LIKE_KEYS = ("like_count", "likeCount")
REPOST_KEYS = ("retweet_count", "retweetCount", "repost_count", "repostCount")
REPLY_KEYS = ("reply_count", "replyCount")


def parse_post_url(raw_url: Optional[str]) -> Optional[ParsedPostUrl]:
    value = (raw_url or "").strip()
    if not value:
        return None
    try:
        parsed = urlparse(value)
    except ValueError:
        return None
    if not parsed.scheme or (parsed.hostname or "").lower() not in X_POST_HOSTS:
        return None
    match = _STATUS_PATH.search(parsed.path)
    if not match:
        return None
    post_id = match.group(1)
    return ParsedPostUrl(post_id=post_id, canonical_url=f"https://x.com/i/web/status/{post_id}")


def read_metric(metrics: Optional[dict], keys: tuple) -> Optional[int]:
    """First finite numeric value among ``keys``, floored. None when absent."""
    if not isinstance(metrics, dict):
        return None
    for key in keys:
        value: Any = metrics.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if math.isfinite(value):
            return math.floor(value)
    return None


class SocialMetricsClient:
    def __init__(self, bearer_token: Optional[str], http: Optional[JsonHttpClient] = None, base_url: str = X_API_BASE_URL):
        self.bearer_token = (bearer_token or "").strip() or None
        self.http = http or JsonHttpClient()
        self.base_url = base_url.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return self.bearer_token is not None

    def fetch_post_metrics(self, post_id: str) -> Result[PostMetrics]:
        if not self.bearer_token:
            return Err(MissingCredentialsError("X_API_KEY is required"))
        try:
            payload = self.http.get_json(
                f"{self.base_url}/tweets/{post_id}",
                params={"tweet.fields": "public_metrics"},
                headers={"Authorization": f"Bearer {self.bearer_token}"},
            )
        except HttpStatusError as e:
            return Err(ExternalError(f"Failed while requesting X post metrics for {post_id}: {e}"))

        data = payload.get("data") if isinstance(payload, dict) else None
        data = data if isinstance(data, dict) else {}
        metrics = data.get("public_metrics") or data.get("publicMetrics")
        return Ok(PostMetrics(
            view_count=read_metric(metrics, VIEW_KEYS),
            like_count=read_metric(metrics, LIKE_KEYS),
            repost_count=read_metric(metrics, REPOST_KEYS),
            reply_count=read_metric(metrics, REPLY_KEYS),
        ))

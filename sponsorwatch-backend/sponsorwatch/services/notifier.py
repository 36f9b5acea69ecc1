"""
"Video went live" delivery to Discord and Todoist.
"""
from __future__ import annotations

import logging
from typing import Optional

from sponsorwatch.core.enums import NotificationType
from sponsorwatch.core.errors import ExternalError
from sponsorwatch.core.result import Err, Ok, Result
from sponsorwatch.services.http import HttpStatusError, JsonHttpClient

logger = logging.getLogger(__name__)

YOUTUBE_RED = 0xFF0000
TODOIST_TASKS_URL = "https://api.todoist.com/rest/v2/tasks"


def resolve_webhook_url(raw: Optional[str]) -> Optional[str]:
    return (raw or "").strip() or None


def video_watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def video_live_message(channel_name: str, title: str) -> str:
    return f"{channel_name} video live: {title}"


def build_video_embed(video, channel_name: str) -> dict:
    embed = {
        "title": video.title,
        "url": video_watch_url(video.video_id),
        "color": YOUTUBE_RED,
        "author": {"name": channel_name},
    }
    if video.thumbnail_url:
        embed["image"] = {"url": video.thumbnail_url}
    if video.published_at:
        embed["timestamp"] = video.published_at.isoformat()
    return {"embeds": [embed]}


class DiscordNotifier:
    def __init__(self, webhook_url: Optional[str], http: Optional[JsonHttpClient] = None):
        self.webhook_url = resolve_webhook_url(webhook_url)
        self.http = http or JsonHttpClient(base_delay=0.5)

    def send_video_embed(self, video, channel_name: str) -> Result[bool]:
        """Ok(False) when no webhook is configured."""
        if not self.webhook_url:
            return Ok(False)
        try:
            self.http.post_json(self.webhook_url, build_video_embed(video, channel_name))
        except HttpStatusError as e:
            status = e.status_code if e.status_code is not None else "network"
            return Err(ExternalError(f"Discord webhook failed ({status}): {e.body or e}"))
        return Ok(True)


class TodoistNotifier:
    def __init__(self, api_token: Optional[str], http: Optional[JsonHttpClient] = None):
        self.api_token = (api_token or "").strip() or None
        self.http = http or JsonHttpClient(base_delay=0.5)

    def create_video_task(self, video, channel_name: str) -> Result[bool]:
        if not self.api_token:
            return Ok(False)
        try:
            self.http.post_json(
                TODOIST_TASKS_URL,
                {
                    "content": video_live_message(channel_name, video.title),
                    "description": video_watch_url(video.video_id),
                },
                headers={"Authorization": f"Bearer {self.api_token}"},
            )
        except HttpStatusError as e:
            return Err(ExternalError(f"Todoist task creation failed: {e}"))
        return Ok(True)


class NotificationDispatcher:
    def __init__(self, discord: DiscordNotifier, todoist: TodoistNotifier):
        self.discord = discord
        self.todoist = todoist

    def deliver(self, notification_type: str, video, channel_name: str) -> Result[bool]:
        if notification_type == NotificationType.DISCORD_VIDEO_LIVE.value:
            return self.discord.send_video_embed(video, channel_name)
        if notification_type == NotificationType.TODOIST_VIDEO_LIVE.value:
            return self.todoist.create_video_task(video, channel_name)
        logger.warning(f"[notifier] Unknown notification type: {notification_type}")
        return Ok(False)

from enum import Enum

class NotificationType(str, Enum):
    DISCORD_VIDEO_LIVE = "discord_video_live"
    TODOIST_VIDEO_LIVE = "todoist_video_live"

class CrawlStage(str, Enum):
    # Soft-failure stages recorded on a crawl summary
    X_REFRESH = "x-refresh"
    SPONSOR = "sponsor"
    SPONSOR_PERSIST = "sponsor-persist"
    COMMENT_AI = "comment-ai"
    COMMENT_PERSIST = "comment-persist"
    NOTIFICATIONS = "notifications"
    NOTIFY_DELIVER = "notify-deliver"

from sponsorwatch.models.video import Video
from sponsorwatch.models.comment import Comment
from sponsorwatch.models.sponsor import Sponsor, SponsorToVideo
from sponsorwatch.models.notification import Notification
from sponsorwatch.models.checkpoint import Checkpoint

__all__ = ["Video", "Comment", "Sponsor", "SponsorToVideo", "Notification", "Checkpoint"]

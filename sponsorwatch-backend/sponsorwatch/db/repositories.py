from datetime import datetime, timezone
from typing import TypeVar, Generic, Type, Optional
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from sponsorwatch.db.base import Base

T = TypeVar("T", bound=Base)


def dialect_insert(db: Session):
    """INSERT construct with ON CONFLICT support for the session's backend."""
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


class BaseRepository(Generic[T]):
    """Generic repository keyed by the model's primary key."""

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model

    def get_by_id(self, id: str) -> Optional[T]:
        return self.db.get(self.model, id)

    def create(self, **kwargs) -> T:
        instance = self.model(**kwargs)
        self.db.add(instance)
        return instance

    def delete(self, id: str) -> bool:
        instance = self.get_by_id(id)
        if instance:
            self.db.delete(instance)
            return True
        return False


class VideoRepository(BaseRepository):
    """Repository for Video operations."""

    def __init__(self, db: Session):
        from sponsorwatch.models import Video
        super().__init__(db, Video)

    def upsert_snapshot(self, snapshot) -> tuple:
        """Insert or refresh a video from an API snapshot. Returns (video, is_new)."""
        video = self.get_by_id(snapshot.video_id)
        is_new = video is None
        if is_new:
            video = self.create(video_id=snapshot.video_id, title=snapshot.title, published_at=snapshot.published_at)
        video.title = snapshot.title
        video.description = snapshot.description
        video.thumbnail_url = snapshot.thumbnail_url
        video.published_at = snapshot.published_at
        video.view_count = snapshot.view_count
        video.like_count = snapshot.like_count
        video.comment_count = snapshot.comment_count
        return video, is_new

    def update_x_metrics(self, video_id: str, x_url: str, metrics) -> bool:
        video = self.get_by_id(video_id)
        if not video:
            return False
        video.x_url = x_url
        video.x_views = metrics.view_count
        video.x_likes = metrics.like_count
        video.x_reposts = metrics.repost_count
        video.x_comments = metrics.reply_count
        return True


class CommentRepository(BaseRepository):
    """Repository for Comment operations."""

    def __init__(self, db: Session):
        from sponsorwatch.models import Comment
        super().__init__(db, Comment)

    def get_by_video(self, video_id: str):
        return self.db.query(self.model).filter(
            self.model.video_id == video_id
        ).all()

    def get_pending(self, video_id: str, limit: int):
        return self.db.query(self.model).filter(
            self.model.video_id == video_id,
            self.model.is_processed == False
        ).order_by(self.model.published_at.desc()).limit(limit).all()

    def delete_ids(self, comment_ids: list[str]) -> int:
        if not comment_ids:
            return 0
        return self.db.query(self.model).filter(
            self.model.comment_id.in_(comment_ids)
        ).delete(synchronize_session=False)

    def apply_classification(self, comment_id: str, classification) -> bool:
        comment = self.get_by_id(comment_id)
        if not comment:
            return False
        comment.is_editing_mistake = classification.is_editing_mistake
        comment.is_sponsor_mention = classification.is_sponsor_mention
        comment.is_question = classification.is_question
        comment.is_positive_comment = classification.is_positive_comment
        comment.is_processed = True
        return True


class SponsorRepository(BaseRepository):
    """Repository for Sponsor and sponsor-to-video links."""

    def __init__(self, db: Session):
        from sponsorwatch.models import Sponsor
        super().__init__(db, Sponsor)

    def upsert(self, sponsor_id: str, sponsor_key: str, name: str) -> str:
        """Insert or rename the sponsor in one statement. Returns the stored sponsor_id."""
        insert = dialect_insert(self.db)
        stmt = insert(self.model).values(sponsor_id=sponsor_id, sponsor_key=sponsor_key, name=name)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.model.sponsor_key],
            set_={"name": stmt.excluded.name},
        )
        self.db.execute(stmt)
        return self.db.execute(
            select(self.model.sponsor_id).where(self.model.sponsor_key == sponsor_key)
        ).scalar_one()

    def link_to_video(self, video_id: str, sponsor_id: str) -> None:
        """Make ``sponsor_id`` the only sponsor linked to the video."""
        from sponsorwatch.models import SponsorToVideo
        self.db.query(SponsorToVideo).filter(
            SponsorToVideo.video_id == video_id,
            SponsorToVideo.sponsor_id != sponsor_id
        ).delete(synchronize_session=False)
        exists = self.db.get(SponsorToVideo, (sponsor_id, video_id))
        if not exists:
            self.db.add(SponsorToVideo(sponsor_id=sponsor_id, video_id=video_id))

    def clear_video_links(self, video_id: str) -> int:
        from sponsorwatch.models import SponsorToVideo
        return self.db.query(SponsorToVideo).filter(
            SponsorToVideo.video_id == video_id
        ).delete(synchronize_session=False)

    def get_for_video(self, video_id: str):
        from sponsorwatch.models import SponsorToVideo
        return self.db.query(self.model).join(
            SponsorToVideo, SponsorToVideo.sponsor_id == self.model.sponsor_id
        ).filter(SponsorToVideo.video_id == video_id).all()


class NotificationRepository(BaseRepository):
    """Repository for Notification operations."""

    def __init__(self, db: Session):
        from sponsorwatch.models import Notification
        super().__init__(db, Notification)

    def insert_if_missing(self, notification_id: str, **kwargs) -> bool:
        # Insert-or-ignore; rowcount tells whether this call created the row
        insert = dialect_insert(self.db)
        stmt = insert(self.model).values(notification_id=notification_id, **kwargs)
        stmt = stmt.on_conflict_do_nothing(index_elements=[self.model.notification_id])
        return self.db.execute(stmt).rowcount == 1


class CheckpointRepository(BaseRepository):
    """Repository for crawler checkpoints."""

    def __init__(self, db: Session):
        from sponsorwatch.models import Checkpoint
        super().__init__(db, Checkpoint)

    def upsert(self, state_key: str, cursor: Optional[str], meta_json: str):
        checkpoint = self.get_by_id(state_key)
        now = datetime.now(timezone.utc)
        if checkpoint:
            checkpoint.cursor = cursor
            checkpoint.meta_json = meta_json
            checkpoint.updated_at = now
            return checkpoint
        return self.create(state_key=state_key, cursor=cursor, meta_json=meta_json, updated_at=now)

from datetime import datetime

from sqlalchemy import String, Integer, Text, Boolean, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from sponsorwatch.db.base import Base

class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_video_processed", "video_id", "is_processed"),
    )

    comment_id: Mapped[str] = mapped_column(String, primary_key=True)
    video_id: Mapped[str] = mapped_column(String, ForeignKey("videos.video_id"), nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String, nullable=False, default="")
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    like_count: Mapped[int] = mapped_column(Integer, default=0)
    reply_count: Mapped[int] = mapped_column(Integer, default=0)

    # AI classification; null until processed
    is_editing_mistake: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_sponsor_mention: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_question: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_positive_comment: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

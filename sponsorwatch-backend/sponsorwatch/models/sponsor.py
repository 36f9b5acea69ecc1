from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column
from sponsorwatch.db.base import Base

class Sponsor(Base):
    __tablename__ = "sponsors"

    sponsor_id: Mapped[str] = mapped_column(String, primary_key=True)
    sponsor_key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class SponsorToVideo(Base):
    __tablename__ = "sponsor_to_videos"

    sponsor_id: Mapped[str] = mapped_column(String, ForeignKey("sponsors.sponsor_id"), primary_key=True)
    video_id: Mapped[str] = mapped_column(String, ForeignKey("videos.video_id"), primary_key=True)

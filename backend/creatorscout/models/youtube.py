from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from creatorscout.db.database import Base


class YouTubeChannel(Base):
    __tablename__ = "yt_creators"

    channel_id = Column(String, primary_key=True)
    channel_name = Column(String)
    handle = Column(String)
    description = Column(Text)

    subscribers = Column(Integer, default=0)
    total_views = Column(Integer, default=0)
    video_count = Column(Integer, default=0)
    is_verified = Column(Boolean, default=False)

    channel_url = Column(String)
    thumbnail_url = Column(String)
    country = Column(String)
    joined_date = Column(String)

    scraped_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    videos = relationship("YouTubeVideo", back_populates="channel")


class YouTubeVideo(Base):
    __tablename__ = "yt_videos"

    video_id = Column(String, primary_key=True)
    channel_id = Column(String, ForeignKey("yt_creators.channel_id"), nullable=False, index=True)
    title = Column(String)
    description = Column(Text)
    url = Column(String)

    views = Column(Integer, default=0)
    likes = Column(Integer, default=0)
    comments = Column(Integer, default=0)

    duration = Column(String)
    published_at = Column(String)
    thumbnail_url = Column(String)

    channel = relationship("YouTubeChannel", back_populates="videos")

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from creatorscout.db.database import Base


class InstagramCreator(Base):
    __tablename__ = "creators"

    username = Column(String, primary_key=True)
    id = Column(String)
    full_name = Column(String)
    biography = Column(Text)

    followers = Column(Integer, default=0)
    following = Column(Integer, default=0)
    posts_count = Column(Integer, default=0)

    is_verified = Column(Boolean, default=False)
    is_business = Column(Boolean, default=False)
    business_category = Column(String)
    private = Column(Boolean, default=False)

    profile_pic_url = Column(String)
    profile_pic_url_hd = Column(String)
    external_urls = Column(JSON, default=list)

    scraped_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    posts = relationship("InstagramPost", back_populates="creator")


class InstagramPost(Base):
    __tablename__ = "posts"

    id = Column(String, primary_key=True)
    creator_username = Column(String, ForeignKey("creators.username"), nullable=False, index=True)
    type = Column(String)
    short_code = Column(String)
    caption = Column(Text)
    hashtags = Column(JSON, default=list)
    url = Column(String)

    likes_count = Column(Integer, default=0)
    comments_count = Column(Integer, default=0)

    timestamp = Column(String)  # ISO-8601 as reported by the scraper
    display_url = Column(String)

    creator = relationship("InstagramCreator", back_populates="posts")

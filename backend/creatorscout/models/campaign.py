from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from datetime import datetime, timezone

from creatorscout.db.database import Base
from creatorscout.models.enums import CampaignState


class CampaignStatus(Base):
    __tablename__ = "campaigns"

    username = Column(String, ForeignKey("creators.username"), primary_key=True)
    status = Column(String, nullable=False, default=CampaignState.NOT_CONTACTED.value)
    notes = Column(Text, default="")
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


class YouTubeCampaignStatus(Base):
    __tablename__ = "yt_campaigns"

    channel_id = Column(String, ForeignKey("yt_creators.channel_id"), primary_key=True)
    status = Column(String, nullable=False, default=CampaignState.NOT_CONTACTED.value)
    notes = Column(Text, default="")
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from datetime import datetime, timezone

from creatorscout.db.database import Base


class AnalysisResult(Base):
    __tablename__ = "analysis_results"

    id = Column(String, primary_key=True)  # "<platform>:<creator id>"
    platform = Column(String, nullable=False, index=True)
    creator_id = Column(String, nullable=False)
    creator_name = Column(String)

    profile_scores = Column(JSON, default=dict)
    best_fit_profile = Column(String)
    best_fit_score = Column(Integer, default=0)
    reasoning = Column(Text)

    analyzed_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

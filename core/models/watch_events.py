from sqlalchemy import Column, String, Float, Boolean, TIMESTAMP, Index
from core.db import Base
from core.models.types import SurrogateKey

class VideoWatchEvent(Base):
    """One playback session reported by the client"""
    __tablename__ = "video_watch_events"

    id = Column(SurrogateKey, primary_key=True, autoincrement=True)
    video_id = Column(String, nullable=False)
    user_id = Column(String)
    watch_duration_seconds = Column(Float, nullable=False, default=0.0)
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_watch_events_created_at", "created_at"),
    )

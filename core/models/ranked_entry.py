from sqlalchemy import Column, String, Float, Integer, Boolean, Text, TIMESTAMP, Index
from core.db import Base
from core.models.types import SurrogateKey

class RankedEntry(Base):
    """Row of the current trending ranking; the whole table is replaced every cycle"""
    __tablename__ = "trending_videos"

    id = Column(SurrogateKey, primary_key=True, autoincrement=True)
    video_id = Column(String, nullable=False)
    score = Column(Float, nullable=False)
    rank = Column(Integer, nullable=False, comment="1-based position after the full sort")
    calculated_at = Column(TIMESTAMP(timezone=True), nullable=False)

    # Written back by the cache warmer
    cache_warmed_at = Column(TIMESTAMP(timezone=True))
    cache_warming_failed = Column(Boolean, nullable=False, default=False)
    cache_warming_error = Column(Text)

    __table_args__ = (
        Index("idx_trending_videos_rank", "rank"),
    )

from sqlalchemy import Column, String, Text, BIGINT, TIMESTAMP, Index
from core.db import Base

class Video(Base):
    """Video document maintained by the upload/transcode pipeline"""
    __tablename__ = "videos"

    id = Column(String, primary_key=True)
    status = Column(String, nullable=False, default="processing", comment="processing | ready | failed")
    likes_count = Column(BIGINT, default=0)
    comments_count = Column(BIGINT, default=0)
    shares_count = Column(BIGINT, default=0)
    privacy = Column(String, default="public", comment="public | private | followers-only")
    hls_url = Column(Text, comment="HLS manifest location")
    storage_public_id = Column(Text, comment="Stable asset identifier used for signed URLs")
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, comment="Upload time (UTC)")
    updated_at = Column(TIMESTAMP(timezone=True), comment="Last status change (UTC)")

    __table_args__ = (
        Index("idx_videos_status_created", "status", "created_at"),
        Index("idx_videos_updated_at", "updated_at"),
    )

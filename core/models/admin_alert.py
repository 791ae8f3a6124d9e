from sqlalchemy import Column, String, Float, Boolean, Text, TIMESTAMP, Index
from core.db import Base
from core.models.types import SurrogateKey

class AdminAlert(Base):
    """Per-violation notification; only acknowledgement (outside the jobs) mutates it"""
    __tablename__ = "admin_alerts"

    id = Column(SurrogateKey, primary_key=True, autoincrement=True)
    type = Column(String, nullable=False, comment="processing_failure | storage_warning")
    severity = Column(String, nullable=False, comment="critical | warning | info")
    message = Column(Text, nullable=False)
    threshold = Column(Float, nullable=False)
    current_value = Column(Float, nullable=False)
    acknowledged = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_admin_alerts_created_at", "created_at"),
    )

from sqlalchemy import Column, String, TIMESTAMP, Index
from core.db import Base
from core.models.types import JsonPayload, SurrogateKey

class AnalyticsSnapshot(Base):
    """
    Append-only record of one aggregation run.

    Rows are never updated; readers take the newest row of a kind by
    ordering on created_at.
    """
    __tablename__ = "analytics"

    id = Column(SurrogateKey, primary_key=True, autoincrement=True)
    type = Column(String, nullable=False, comment="SnapshotKind value")
    period = Column(String, nullable=False, comment="SnapshotPeriod value")
    source = Column(String, nullable=False, default="db_aggregation")
    metrics = Column(JsonPayload, nullable=False, comment="Kind-specific payload (camelCase wire names)")
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, comment="Write time assigned by the job")
    snapshot_date = Column(TIMESTAMP(timezone=True), comment="UTC midnight of the run day (daily jobs)")
    window_start = Column(TIMESTAMP(timezone=True), comment="Start of the covered event-time window")
    window_end = Column(TIMESTAMP(timezone=True), comment="End of the covered event-time window")

    __table_args__ = (
        Index("idx_analytics_type_created", "type", "created_at"),
    )

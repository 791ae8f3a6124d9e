from sqlalchemy import Column, String, Float, TIMESTAMP, Index
from core.db import Base
from core.models.types import SurrogateKey

class ApiCallMetric(Base):
    """Raw per-call latency/status record written by the API layer"""
    __tablename__ = "api_call_metrics"

    id = Column(SurrogateKey, primary_key=True, autoincrement=True)
    function_name = Column(String, nullable=False, comment="Endpoint / function name")
    duration_ms = Column(Float, nullable=False)
    status = Column(String, nullable=False, default="success", comment="success | error")
    timestamp = Column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_api_call_metrics_timestamp", "timestamp"),
    )

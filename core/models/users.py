from sqlalchemy import Column, String, TIMESTAMP, Index
from core.db import Base

class User(Base):
    """Platform user document (owned by the auth subsystem, read-only here)"""
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, comment="Account creation time (UTC)")
    updated_at = Column(TIMESTAMP(timezone=True), comment="Last profile write; legacy activity signal")
    last_login_at = Column(TIMESTAMP(timezone=True), comment="Last login; absent on older accounts")
    country_code = Column(String(2), comment="ISO country code (e.g., KR)")
    region = Column(String, comment="Region name")

    __table_args__ = (
        Index("idx_users_created_at", "created_at"),
        Index("idx_users_last_login_at", "last_login_at"),
        Index("idx_users_updated_at", "updated_at"),
    )

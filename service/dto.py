"""Data Transfer Objects for service layer"""
from typing import Optional
from pydantic import BaseModel


class HealthResponseDTO(BaseModel):
    """Service layer DTO for health check responses"""
    ok: bool = True
    timestamp: Optional[str] = None
    version: Optional[str] = None
    database: bool = True
    last_health_snapshot_at: Optional[str] = None

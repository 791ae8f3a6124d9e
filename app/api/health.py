"""Health check API endpoints"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.deps.common import get_db_session
from service.health_service import get_health
from service.dto import HealthResponseDTO

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponseDTO)
def health_check(session: Session = Depends(get_db_session)) -> HealthResponseDTO:
    """
    Worker health check endpoint.

    Returns:
        HealthResponseDTO: Database reachability and last health snapshot time
    """
    return get_health(session)

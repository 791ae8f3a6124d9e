"""Health service for the worker process"""
import logging
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.models import SnapshotKind
from core.timeutils import ensure_utc
from service.analytics_service import get_latest_snapshot
from service.dto import HealthResponseDTO

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def get_health(session: Session) -> HealthResponseDTO:
    """
    Get process health.

    Pings the database and reports when the last system_health snapshot was
    written, so a stalled scheduler shows up as a stale timestamp.

    Returns:
        HealthResponseDTO: Health check result
    """
    logger.info("Health check requested")

    last_snapshot_at = None
    try:
        session.execute(text("SELECT 1"))
        latest = get_latest_snapshot(session, SnapshotKind.SYSTEM_HEALTH)
        if latest is not None:
            last_snapshot_at = ensure_utc(latest.created_at).isoformat()
        database_ok = True
    except SQLAlchemyError as e:
        logger.warning("Database ping failed", extra={"error": str(e)})
        database_ok = False

    return HealthResponseDTO(
        ok=database_ok,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION,
        database=database_ok,
        last_health_snapshot_at=last_snapshot_at,
    )

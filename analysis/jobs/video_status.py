"""Status tallies over recently updated videos, shared by the health and alert jobs"""
import logging
from collections import Counter
from datetime import datetime
from typing import Optional

import httpx
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.models import Video
from storage.clients.object_store import ObjectStoreClient, StorageError

logger = logging.getLogger(__name__)


def count_statuses(session: Session, since: datetime) -> Counter:
    """Videos updated at or after ``since``, counted per status"""
    rows = session.execute(
        select(Video.status, func.count(Video.id))
        .where(Video.updated_at >= since)
        .group_by(Video.status)
    ).all()
    return Counter({(status or ""): count for status, count in rows})


def approximate_object_count(store: ObjectStoreClient, prefix: str, max_results: int,
                             trace_id: str) -> Optional[int]:
    """Best-effort object count; None when the store cannot be read"""
    try:
        return store.count_objects(prefix, max_results)
    except (httpx.HTTPError, StorageError) as e:
        logger.warning(f"Object count unavailable: {e}", extra={"trace_id": trace_id, "error": str(e)})
        return None

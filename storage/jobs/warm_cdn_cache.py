#!/usr/bin/env python3
import sys
import logging
import argparse
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

import httpx
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import select
from sqlalchemy.orm import Session

# Add project root to path
sys.path.insert(0, ".")

from core.db import SessionLocal
from core.logging import new_trace_id, setup_json_logging
from core.models import RankedEntry, Video
from core.timeutils import utc_now
from storage.clients.object_store import ObjectStoreClient

logger = logging.getLogger(__name__)

RESTRICTED_PRIVACY = ("private", "followers-only")

class CacheWarmerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="CDN_WARMER_", extra="ignore")

    signed_url_ttl_seconds: int = 300
    warm_timeout_seconds: float = 5.0
    user_agent: str = "Snapflow-CDN-Warmer/1.0"

@dataclass
class WarmingReport:
    warmed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[dict] = field(default_factory=list)

class CdnCacheWarmer:
    """
    Primes the CDN with the HLS manifest of newly ranked videos.

    Reacts to RankedEntry creation. Restricted videos are primed through a
    short-lived signed URL. The outcome is written back onto the entry;
    failed requests are not retried.
    """

    def __init__(self, session: Optional[Session] = None,
                 store: Optional[ObjectStoreClient] = None,
                 settings: Optional[CacheWarmerSettings] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self._owns_session = session is None
        self._owns_store = store is None
        self.db = session or SessionLocal()
        self.store = store or ObjectStoreClient()
        self.settings = settings or CacheWarmerSettings()
        self.http = httpx.Client(
            timeout=self.settings.warm_timeout_seconds,
            headers={"User-Agent": self.settings.user_agent},
            transport=transport,
        )
        self.trace_id = new_trace_id("warm_cdn_cache")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.http.close()
        if self._owns_store:
            self.store.close()
        if self._owns_session:
            self.db.close()

    def resolve_warm_url(self, video: Video) -> Optional[str]:
        """Manifest URL to request, or None when the video cannot be warmed"""
        if not video.hls_url:
            logger.warning(f"Video {video.id} has no HLS URL, skipping CDN warming",
                           extra={"trace_id": self.trace_id})
            return None

        privacy = (video.privacy or "").lower()
        if privacy not in RESTRICTED_PRIVACY:
            return video.hls_url

        if not video.storage_public_id:
            logger.warning(f"Video {video.id} is {privacy} but has no asset id, skipping CDN warming",
                           extra={"trace_id": self.trace_id})
            return None

        try:
            return self.store.create_signed_url(
                video.storage_public_id, expires_in=self.settings.signed_url_ttl_seconds
            )
        except Exception as e:
            logger.error(f"Failed to sign URL for restricted video {video.id}: {e}",
                         extra={"trace_id": self.trace_id, "error": str(e)})
            return None

    def warm_entry(self, entry: RankedEntry, report: WarmingReport) -> None:
        video = self.db.get(Video, entry.video_id)
        if video is None:
            logger.error(f"Video document not found for trending item: {entry.video_id}",
                         extra={"trace_id": self.trace_id})
            report.skipped.append(entry.video_id)
            return

        warm_url = self.resolve_warm_url(video)
        if warm_url is None:
            report.skipped.append(entry.video_id)
            return

        try:
            logger.info(f"Warming CDN cache for trending video {video.id}", extra={"trace_id": self.trace_id})
            response = self.http.get(warm_url)
            response.raise_for_status()
            entry.cache_warmed_at = utc_now()
            report.warmed.append(entry.video_id)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"Failed to warm CDN cache for video {video.id}: {message}",
                         extra={"trace_id": self.trace_id, "error": message})
            entry.cache_warming_failed = True
            entry.cache_warming_error = message
            report.errors.append({"video_id": entry.video_id, "error": message})

        self.db.commit()

    def handle_created(self, entries: Iterable[RankedEntry]) -> WarmingReport:
        """Warm each newly created entry; one failure never stops the rest"""
        report = WarmingReport()
        for entry in entries:
            self.warm_entry(entry, report)

        logger.info("CDN cache warming completed", extra={
            "trace_id": self.trace_id,
            "rows": len(report.warmed),
            "skipped": len(report.skipped),
            "errors": len(report.errors),
        })
        return report

    def warm_pending(self) -> WarmingReport:
        """Entries of the current ranking that have no warming outcome yet"""
        pending = list(self.db.scalars(
            select(RankedEntry)
            .where(RankedEntry.cache_warmed_at.is_(None))
            .where(RankedEntry.cache_warming_failed.is_(False))
            .order_by(RankedEntry.rank)
        ))
        return self.handle_created(pending)

def main():
    parser = argparse.ArgumentParser(description="Warm the CDN for trending videos without a warming outcome")
    parser.parse_args()

    setup_json_logging()

    with CdnCacheWarmer() as warmer:
        warmer.warm_pending()

if __name__ == "__main__":
    main()

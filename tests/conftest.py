"""Common test fixtures for all test modules"""
import os

# Point the module-level engine at SQLite before anything imports core.db
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.db import Base
from core.models import ApiCallMetric, User, Video, VideoWatchEvent
from core.settings import AnalyticsSettings

# Fixed clock: 2025-01-02 02:00 UTC (the daily user job's slot)
NOW = datetime(2025, 1, 2, 2, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def settings():
    return AnalyticsSettings()


@pytest.fixture
def make_video(session, now):
    """Insert a video; ages are given in hours before ``now``"""
    def _make(video_id, status="ready", likes=0, comments=0, shares=0, age_hours=1.0,
              updated_minutes_ago=None, **fields):
        created_at = now - timedelta(hours=age_hours)
        updated_at = now - timedelta(minutes=updated_minutes_ago) if updated_minutes_ago is not None else created_at
        video = Video(
            id=video_id, status=status, likes_count=likes, comments_count=comments,
            shares_count=shares, created_at=created_at, updated_at=updated_at, **fields,
        )
        session.add(video)
        session.commit()
        return video
    return _make


@pytest.fixture
def make_user(session):
    def _make(user_id, created_at, last_login_at=None, updated_at=None, country_code=None, region=None):
        user = User(
            id=user_id, created_at=created_at, last_login_at=last_login_at,
            updated_at=updated_at or created_at, country_code=country_code, region=region,
        )
        session.add(user)
        session.commit()
        return user
    return _make


@pytest.fixture
def make_call(session, now):
    def _make(function_name, duration_ms, status="success", minutes_ago=5):
        call = ApiCallMetric(
            function_name=function_name, duration_ms=duration_ms, status=status,
            timestamp=now - timedelta(minutes=minutes_ago),
        )
        session.add(call)
        session.commit()
        return call
    return _make


@pytest.fixture
def make_watch_event(session, now):
    def _make(video_id, seconds, completed=False, hours_ago=12):
        event = VideoWatchEvent(
            video_id=video_id, watch_duration_seconds=seconds, completed=completed,
            created_at=now - timedelta(hours=hours_ago),
        )
        session.add(event)
        session.commit()
        return event
    return _make


class StubObjectStore:
    """Stands in for ObjectStoreClient in job tests"""

    def __init__(self, count=0, error=None, signed_url="https://cdn.example.com/signed/manifest.m3u8"):
        self.count = count
        self.error = error
        self.signed_url = signed_url
        self.count_calls = []
        self.sign_calls = []

    def count_objects(self, prefix, max_results):
        self.count_calls.append((prefix, max_results))
        if self.error:
            raise self.error
        return min(self.count, max_results)

    def create_signed_url(self, object_path, expires_in=300):
        self.sign_calls.append((object_path, expires_in))
        if self.error:
            raise self.error
        return self.signed_url

    def close(self):
        pass


@pytest.fixture
def store():
    return StubObjectStore()


@pytest.fixture
def make_store():
    return StubObjectStore

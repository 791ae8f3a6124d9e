"""Tests for the CDN cache warmer using httpx.MockTransport"""
import httpx
import pytest
from sqlalchemy import select

from core.models import RankedEntry
from storage.clients.object_store import SignedUrlError
from storage.jobs.warm_cdn_cache import CacheWarmerSettings, CdnCacheWarmer

MANIFEST = "https://cdn.example.com/videos/{}/master.m3u8"


@pytest.fixture
def add_entry(session, now):
    def _add(video_id, rank=1, **fields):
        entry = RankedEntry(video_id=video_id, score=1.0, rank=rank, calculated_at=now, **fields)
        session.add(entry)
        session.commit()
        return entry
    return _add


@pytest.fixture
def requests_seen():
    return []


@pytest.fixture
def make_warmer(session, store, requests_seen):
    def _make(failing_paths=(), store_override=None):
        def handler(request):
            requests_seen.append(str(request.url))
            if request.url.path in failing_paths:
                return httpx.Response(503)
            return httpx.Response(200, text="#EXTM3U")

        return CdnCacheWarmer(
            session=session,
            store=store_override or store,
            settings=CacheWarmerSettings(),
            transport=httpx.MockTransport(handler),
        )
    return _make


class TestResolveWarmUrl:

    def test_public_video_uses_manifest(self, make_video, make_warmer):
        video = make_video("pub", hls_url=MANIFEST.format("pub"))
        with make_warmer() as warmer:
            assert warmer.resolve_warm_url(video) == MANIFEST.format("pub")

    @pytest.mark.parametrize("privacy", ["private", "followers-only", "PRIVATE"])
    def test_restricted_video_is_signed(self, make_video, make_warmer, store, privacy):
        video = make_video("secret", hls_url=MANIFEST.format("secret"), privacy=privacy,
                           storage_public_id="hls/secret/master.m3u8")
        with make_warmer() as warmer:
            assert warmer.resolve_warm_url(video) == store.signed_url
        assert store.sign_calls == [("hls/secret/master.m3u8", 300)]

    def test_restricted_without_asset_id_is_skipped(self, make_video, make_warmer, store):
        video = make_video("secret", hls_url=MANIFEST.format("secret"), privacy="private")
        with make_warmer() as warmer:
            assert warmer.resolve_warm_url(video) is None
        assert store.sign_calls == []

    def test_missing_manifest_is_skipped(self, make_video, make_warmer):
        video = make_video("nohls")
        with make_warmer() as warmer:
            assert warmer.resolve_warm_url(video) is None

    def test_signing_failure_is_skipped(self, make_video, make_warmer, make_store):
        video = make_video("secret", hls_url=MANIFEST.format("secret"), privacy="private",
                           storage_public_id="hls/secret/master.m3u8")
        failing_store = make_store(error=SignedUrlError("refused"))
        with make_warmer(store_override=failing_store) as warmer:
            assert warmer.resolve_warm_url(video) is None


class TestHandleCreated:

    def test_warmed_entry_is_stamped(self, session, make_video, make_warmer, add_entry, requests_seen):
        make_video("pub", hls_url=MANIFEST.format("pub"))
        entry = add_entry("pub")

        with make_warmer() as warmer:
            report = warmer.handle_created([entry])

        session.refresh(entry)
        assert report.warmed == ["pub"]
        assert entry.cache_warmed_at is not None
        assert entry.cache_warming_failed is False
        assert requests_seen == [MANIFEST.format("pub")]

    def test_failure_is_recorded_and_batch_continues(self, session, make_video, make_warmer, add_entry):
        make_video("bad", hls_url=MANIFEST.format("bad"))
        make_video("good", hls_url=MANIFEST.format("good"))
        bad = add_entry("bad", rank=1)
        good = add_entry("good", rank=2)

        with make_warmer(failing_paths={"/videos/bad/master.m3u8"}) as warmer:
            report = warmer.handle_created([bad, good])

        session.refresh(bad)
        session.refresh(good)
        assert report.warmed == ["good"]
        assert [e["video_id"] for e in report.errors] == ["bad"]
        assert bad.cache_warming_failed is True
        assert "503" in bad.cache_warming_error
        assert bad.cache_warmed_at is None
        assert good.cache_warmed_at is not None

    def test_malformed_manifest_url_is_recorded_and_batch_continues(self, session, make_video, make_warmer,
                                                                    add_entry, requests_seen):
        make_video("bad", hls_url="https://cdn.example.com/bad\x01.m3u8")
        make_video("good", hls_url=MANIFEST.format("good"))
        bad = add_entry("bad", rank=1)
        good = add_entry("good", rank=2)

        with make_warmer() as warmer:
            report = warmer.handle_created([bad, good])

        session.refresh(bad)
        session.refresh(good)
        assert report.warmed == ["good"]
        assert [e["video_id"] for e in report.errors] == ["bad"]
        assert bad.cache_warming_failed is True
        assert bad.cache_warming_error
        assert good.cache_warmed_at is not None
        assert requests_seen == [MANIFEST.format("good")]

    def test_entry_without_video_is_skipped(self, make_warmer, add_entry, requests_seen):
        entry = add_entry("ghost")

        with make_warmer() as warmer:
            report = warmer.handle_created([entry])

        assert report.skipped == ["ghost"]
        assert requests_seen == []

    def test_restricted_video_is_warmed_through_signed_url(self, make_video, make_warmer, add_entry,
                                                           store, requests_seen):
        make_video("secret", hls_url=MANIFEST.format("secret"), privacy="followers-only",
                   storage_public_id="hls/secret/master.m3u8")
        entry = add_entry("secret")

        with make_warmer() as warmer:
            report = warmer.handle_created([entry])

        assert report.warmed == ["secret"]
        assert requests_seen == [store.signed_url]


class TestWarmPending:

    def test_only_entries_without_outcome_are_warmed(self, session, now, make_video, make_warmer,
                                                     add_entry, requests_seen):
        for video_id in ("done", "broken", "new"):
            make_video(video_id, hls_url=MANIFEST.format(video_id))
        add_entry("done", rank=1, cache_warmed_at=now)
        add_entry("broken", rank=2, cache_warming_failed=True, cache_warming_error="timeout")
        add_entry("new", rank=3)

        with make_warmer() as warmer:
            report = warmer.warm_pending()

        assert report.warmed == ["new"]
        assert requests_seen == [MANIFEST.format("new")]
        pending = session.scalars(
            select(RankedEntry).where(RankedEntry.cache_warmed_at.is_(None))
        ).all()
        assert [e.video_id for e in pending] == ["broken"]

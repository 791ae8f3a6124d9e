"""Tests for the object storage client using httpx.MockTransport"""
import json

import httpx
import pytest

from storage.clients.object_store import (
    ObjectStoreClient, SignedUrlError, StorageError, StorageSettings,
)


def make_client(handler, page_size=1000):
    settings = StorageSettings(
        storage_url="https://store.example.com",
        storage_service_key="service-key",
        storage_bucket="videos",
        storage_page_size=page_size,
    )
    return ObjectStoreClient(settings=settings, transport=httpx.MockTransport(handler))


class TestCountObjects:
    """Test paginated, capped object counting"""

    def test_pages_until_empty_page(self):
        requests = []

        def handler(request):
            body = json.loads(request.content)
            requests.append(body)
            remaining = max(0, 25 - body["offset"])
            return httpx.Response(200, json=[{"name": f"f{i}"} for i in range(min(body["limit"], remaining))])

        with make_client(handler, page_size=10) as client:
            assert client.count_objects("raw-videos/", max_results=1000) == 25

        assert [r["offset"] for r in requests] == [0, 10, 20, 25]
        assert all(r["prefix"] == "raw-videos/" for r in requests)

    def test_server_side_page_cap_does_not_undercount(self):
        def handler(request):
            body = json.loads(request.content)
            remaining = max(0, 23 - body["offset"])
            # Server never returns more than 5 items per page
            return httpx.Response(200, json=[{"name": "f"}] * min(5, body["limit"], remaining))

        with make_client(handler, page_size=10) as client:
            assert client.count_objects("raw-videos/", max_results=1000) == 23

    def test_count_is_capped(self):
        def handler(request):
            body = json.loads(request.content)
            return httpx.Response(200, json=[{"name": "f"}] * body["limit"])

        with make_client(handler, page_size=10) as client:
            assert client.count_objects("raw-videos/", max_results=35) == 35

    def test_sends_service_credentials(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["path"] = request.url.path
            return httpx.Response(200, json=[])

        with make_client(handler) as client:
            client.count_objects("raw-videos/", max_results=10)

        assert seen["auth"] == "Bearer service-key"
        assert seen["path"] == "/storage/v1/object/list/videos"

    def test_client_errors_are_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(403, json={"error": "forbidden"})

        with make_client(handler) as client:
            with pytest.raises(httpx.HTTPStatusError):
                client.count_objects("raw-videos/", max_results=10)
        assert len(calls) == 1

    def test_unexpected_payload(self):
        with make_client(lambda request: httpx.Response(200, json={"items": []})) as client:
            with pytest.raises(StorageError):
                client.count_objects("raw-videos/", max_results=10)


class TestSignedUrls:
    def test_signed_url_is_absolute(self):
        def handler(request):
            assert request.url.path == "/storage/v1/object/sign/videos/processed/v1/manifest.m3u8"
            assert json.loads(request.content) == {"expiresIn": 300}
            return httpx.Response(200, json={"signedURL": "/object/sign/videos/processed/v1/manifest.m3u8?token=abc"})

        with make_client(handler) as client:
            url = client.create_signed_url("processed/v1/manifest.m3u8", expires_in=300)

        assert url == "https://store.example.com/storage/v1/object/sign/videos/processed/v1/manifest.m3u8?token=abc"

    def test_empty_asset_id_rejected(self):
        with make_client(lambda request: httpx.Response(200, json={})) as client:
            with pytest.raises(SignedUrlError):
                client.create_signed_url("")

    def test_refused_signing(self):
        with make_client(lambda request: httpx.Response(400, json={"error": "not found"})) as client:
            with pytest.raises(SignedUrlError):
                client.create_signed_url("processed/missing.m3u8")

import httpx
import logging
from typing import Any, Dict, List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

logger = logging.getLogger(__name__)

class StorageSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    storage_url: str = "http://localhost:54321"
    storage_service_key: str = ""
    storage_bucket: str = "videos"
    storage_timeout_seconds: float = 10.0
    storage_page_size: int = 1000

class StorageError(Exception):
    """Object store replied with something we cannot use"""

class SignedUrlError(StorageError):
    """Signing an asset identifier was refused"""

def _is_transient(exc: BaseException) -> bool:
    """Retry on 429/5xx and transport errors; other HTTP errors are final"""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 429 or exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)

class ObjectStoreClient:
    """Thin client for the object storage REST API (listing and URL signing)"""

    def __init__(self, settings: Optional[StorageSettings] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings or StorageSettings()
        self.base_url = self.settings.storage_url.rstrip("/") + "/storage/v1"
        self.client = httpx.Client(
            timeout=self.settings.storage_timeout_seconds,
            limits=httpx.Limits(max_connections=5, max_keepalive_connections=2),
            headers={
                "Authorization": f"Bearer {self.settings.storage_service_key}",
                "apikey": self.settings.storage_service_key,
            },
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.client.close()

    def close(self) -> None:
        self.client.close()

    def count_objects(self, prefix: str, max_results: int) -> int:
        """
        Approximate object count under ``prefix``.

        Pages through the listing until an empty page or until ``max_results``
        objects have been seen. A short page is not the end; the server may
        cap page sizes below the requested limit.
        """
        page_size = min(self.settings.storage_page_size, max_results)
        seen = 0
        while seen < max_results:
            items = self._list_page(prefix, limit=min(page_size, max_results - seen), offset=seen)
            if not items:
                break
            seen += len(items)
        return min(seen, max_results)

    def _list_page(self, prefix: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        payload = self._make_request("POST", f"object/list/{self.settings.storage_bucket}", json={
            "prefix": prefix,
            "limit": limit,
            "offset": offset,
        })
        if not isinstance(payload, list):
            raise StorageError(f"Unexpected listing payload: {type(payload).__name__}")
        return payload

    def create_signed_url(self, object_path: str, expires_in: int = 300) -> str:
        """Exchange a stable asset path for a short-lived signed URL"""
        if not object_path:
            raise SignedUrlError("Asset identifier is required")

        try:
            payload = self._make_request(
                "POST",
                f"object/sign/{self.settings.storage_bucket}/{object_path.lstrip('/')}",
                json={"expiresIn": expires_in},
            )
        except httpx.HTTPStatusError as e:
            raise SignedUrlError(f"Signing refused with HTTP {e.response.status_code}") from e

        signed_path = payload.get("signedURL") if isinstance(payload, dict) else None
        if not signed_path:
            raise SignedUrlError("Signing response carried no signedURL")
        return f"{self.base_url}/{signed_path.lstrip('/')}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential_jitter(initial=1, max=10, jitter=0.2),
        retry=retry_if_exception(_is_transient),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            f"Retry {retry_state.attempt_number}: {retry_state.outcome.exception()}"
        )
    )
    def _make_request(self, method: str, endpoint: str, **kwargs) -> Any:
        """Make HTTP request with retry logic for 429/5xx errors"""
        try:
            response = self.client.request(method, f"{self.base_url}/{endpoint}", **kwargs)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code}: {e}")
            raise
        except httpx.RequestError as e:
            logger.error(f"Request error: {e}")
            raise

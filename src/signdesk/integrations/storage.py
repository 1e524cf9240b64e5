"""Blob storage capability for uploaded documents."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from signdesk.core.exceptions import StorageProviderError
from signdesk.core.logging import LoggerMixin


@dataclass(frozen=True)
class StoredBlob:
    """A durably stored object."""

    key: str
    url: str
    size: int
    content_type: str


class BlobStorage(Protocol):
    """Protocol for blob stores."""

    async def put(self, key: str, data: bytes, content_type: str) -> StoredBlob:
        """Store ``data`` under ``key`` and return its public location.

        Raises:
            StorageProviderError: If the store rejects the write
        """
        ...


class HttpBlobStorage(LoggerMixin):
    """Blob store reached with authenticated HTTP PUT requests."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key.lstrip('/')}"

    async def put(self, key: str, data: bytes, content_type: str) -> StoredBlob:
        url = self.url_for(key)
        headers = {"Content-Type": content_type}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.put(url, content=data, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.warning(
                "blob_put_rejected",
                key=key,
                status_code=e.response.status_code,
            )
            raise StorageProviderError(
                f"Blob store rejected {key}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            self.logger.warning("blob_put_failed", key=key, error_message=str(e))
            raise StorageProviderError(f"Blob store unreachable: {e}") from e

        self.logger.info("blob_stored", key=key, size=len(data))
        return StoredBlob(key=key, url=url, size=len(data), content_type=content_type)


class InMemoryBlobStorage:
    """Dictionary-backed blob store with predictable URLs."""

    def __init__(self, base_url: str = "https://storage.example.com") -> None:
        self.base_url = base_url.rstrip("/")
        self.blobs: dict[str, tuple[bytes, str]] = {}

    async def put(self, key: str, data: bytes, content_type: str) -> StoredBlob:
        key = key.lstrip("/")
        self.blobs[key] = (data, content_type)
        return StoredBlob(
            key=key,
            url=f"{self.base_url}/{key}",
            size=len(data),
            content_type=content_type,
        )

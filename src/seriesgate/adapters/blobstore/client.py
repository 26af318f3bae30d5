"""HTTP blob store backed by an Appwrite-style storage bucket."""

from __future__ import annotations

import asyncio
import json
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import ValidationError

from seriesgate.adapters.http_resilience import ResilientClient
from seriesgate.domain.errors import BlobStoreError
from seriesgate.domain.ports.blobs import BlobInfo, StoredBlob

from .schema import FileList, StorageBaseModel, StorageErrorBody, StoredFile

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from seriesgate.config.blobstore import BlobStoreConfig, HttpClientConfig

log = getLogger(__name__)

UNIQUE_ID: Final[str] = "unique()"
LIST_PAGE_SIZE: Final[int] = 100


def _query(method: str, *values: object) -> str:
    return json.dumps({"method": method, "values": list(values)})


class HttpBlobStore:
    """Blob store port over the storage REST API.

    Every call is sent once; failures raise :class:`BlobStoreError`.
    """

    def __init__(
        self,
        *,
        config: BlobStoreConfig,
        client_factory: Callable[[HttpClientConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._http = config.http
        self._client_factory = client_factory or ResilientClient

    def put(
        self,
        data: bytes,
        filename: str,
        *,
        content_type: str | None = None,
        blob_id: str | None = None,
    ) -> StoredBlob:
        return asyncio.run(
            self._put_async(data, filename, content_type=content_type, blob_id=blob_id)
        )

    def delete(self, blob_id: str) -> None:
        asyncio.run(self._delete_async(blob_id))

    def list_blobs(self) -> list[BlobInfo]:
        return asyncio.run(self._list_async())

    async def _put_async(
        self,
        data: bytes,
        filename: str,
        *,
        content_type: str | None,
        blob_id: str | None,
    ) -> StoredBlob:
        mime = content_type or "application/octet-stream"
        async with self._client_factory(self._http) as client:
            response = await self._call(
                client.post(
                    self._config.files_path(),
                    data={"fileId": blob_id or UNIQUE_ID},
                    files={"file": (filename, data, mime)},
                ),
                action="upload",
            )
        stored = self._parse(StoredFile, response)
        log.info("Stored blob %s (%s, %s bytes)", stored.id, filename, len(data))
        return StoredBlob(
            blob_id=stored.id,
            public_url=self._config.public_url(stored.id),
            file_name=stored.name or filename,
            size_bytes=stored.size_original if stored.size_original is not None else len(data),
            content_type=stored.mime_type or mime,
        )

    async def _delete_async(self, blob_id: str) -> None:
        async with self._client_factory(self._http) as client:
            await self._call(
                client.delete(f"{self._config.files_path()}/{blob_id}"),
                action=f"delete {blob_id}",
            )
        log.info("Deleted blob %s", blob_id)

    async def _list_async(self) -> list[BlobInfo]:
        blobs: list[BlobInfo] = []
        cursor: str | None = None
        async with self._client_factory(self._http) as client:
            while True:
                queries = [_query("limit", LIST_PAGE_SIZE)]
                if cursor is not None:
                    queries.append(_query("cursorAfter", cursor))
                response = await self._call(
                    client.get(self._config.files_path(), params={"queries[]": queries}),
                    action="list",
                )
                page = self._parse(FileList, response)
                blobs.extend(
                    BlobInfo(
                        blob_id=item.id,
                        created_at=item.created_at,
                        size_bytes=item.size_original,
                    )
                    for item in page.files
                )
                if len(page.files) < LIST_PAGE_SIZE:
                    break
                cursor = page.files[-1].id
        return blobs

    async def _call(self, request: Awaitable[httpx.Response], *, action: str) -> httpx.Response:
        try:
            response = await request
        except httpx.HTTPError as exc:
            raise BlobStoreError(f"Blob store {action} failed: {exc}") from exc
        if response.is_error:
            raise BlobStoreError(
                f"Blob store {action} failed with HTTP {response.status_code}: "
                f"{_error_message(response)}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _parse[TModel: StorageBaseModel](model: type[TModel], response: httpx.Response) -> TModel:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise BlobStoreError(f"Unexpected blob store payload: {exc}") from exc


def _error_message(response: httpx.Response) -> str:
    try:
        body = StorageErrorBody.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.text[:200]
    return body.message or response.reason_phrase

"""Port for the opaque blob store holding uploaded bytes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class StoredBlob:
    blob_id: str
    public_url: str
    file_name: str | None = None
    size_bytes: int | None = None
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class BlobInfo:
    blob_id: str
    created_at: datetime | None = None
    size_bytes: int | None = None


@runtime_checkable
class BlobStore(Protocol):
    """Failures surface as exceptions; the engine never retries internally."""

    def put(
        self,
        data: bytes,
        filename: str,
        *,
        content_type: str | None = None,
        blob_id: str | None = None,
    ) -> StoredBlob: ...

    def delete(self, blob_id: str) -> None: ...

    def list_blobs(self) -> Sequence[BlobInfo]: ...

"""Blob store configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .env import require_env_vars

if TYPE_CHECKING:
    from collections.abc import Mapping

BLOBSTORE_TIMEOUT_SECONDS = 120.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class HttpClientConfig:
    """Connection settings for the storage API client."""

    base_url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_seconds: float = BLOBSTORE_TIMEOUT_SECONDS
    rate_limit: RateLimit | None = None


def _api_root(endpoint: str) -> str:
    base = endpoint.rstrip("/")
    return base if base.endswith("/v1") else f"{base}/v1"


@dataclass(frozen=True, slots=True)
class BlobStoreConfig:
    """Holds Appwrite-style storage API configuration values."""

    endpoint: str
    project_id: str
    api_key: str
    bucket_id: str
    http: HttpClientConfig

    @property
    def api_root(self) -> str:
        return _api_root(self.endpoint)

    def files_path(self) -> str:
        return f"/storage/buckets/{self.bucket_id}/files"

    def public_url(self, blob_id: str) -> str:
        return (
            f"{self.api_root}{self.files_path()}/{blob_id}/view?project={self.project_id}"
        )


def get_blob_store_config(*, http: HttpClientConfig | None = None) -> BlobStoreConfig:
    values = require_env_vars(
        (
            "BLOBSTORE_ENDPOINT",
            "BLOBSTORE_PROJECT_ID",
            "BLOBSTORE_API_KEY",
            "BLOBSTORE_BUCKET_ID",
        )
    )
    endpoint = values["BLOBSTORE_ENDPOINT"]
    project_id = values["BLOBSTORE_PROJECT_ID"]
    api_key = values["BLOBSTORE_API_KEY"]
    return BlobStoreConfig(
        endpoint=endpoint,
        project_id=project_id,
        api_key=api_key,
        bucket_id=values["BLOBSTORE_BUCKET_ID"],
        http=http
        or HttpClientConfig(
            base_url=_api_root(endpoint),
            headers={
                "X-Appwrite-Project": project_id,
                "X-Appwrite-Key": api_key,
            },
            rate_limit=RateLimit(calls=10, per_seconds=1.0),
        ),
    )

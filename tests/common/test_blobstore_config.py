from __future__ import annotations

import pytest

from seriesgate.config import MissingConfigurationError, RateLimit, get_blob_store_config

BLOBSTORE_ENV = {
    "BLOBSTORE_ENDPOINT": "https://storage.example.com/",
    "BLOBSTORE_PROJECT_ID": "proj-1",
    "BLOBSTORE_API_KEY": "key-1",
    "BLOBSTORE_BUCKET_ID": "media",
}


@pytest.fixture
def blobstore_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in BLOBSTORE_ENV.items():
        monkeypatch.setenv(name, value)


@pytest.mark.usefixtures("blobstore_env")
def test_blob_store_config_from_env() -> None:
    config = get_blob_store_config()

    assert config.api_root == "https://storage.example.com/v1"
    assert config.files_path() == "/storage/buckets/media/files"
    assert config.public_url("thumb_1") == (
        "https://storage.example.com/v1/storage/buckets/media/files/thumb_1/view?project=proj-1"
    )
    assert config.http.base_url == "https://storage.example.com/v1"
    assert config.http.headers == {
        "X-Appwrite-Project": "proj-1",
        "X-Appwrite-Key": "key-1",
    }
    assert config.http.rate_limit == RateLimit(calls=10, per_seconds=1.0)
    assert config.http.timeout_seconds == 120.0


@pytest.mark.usefixtures("blobstore_env")
def test_blob_store_endpoint_with_version_suffix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLOBSTORE_ENDPOINT", "https://storage.example.com/v1")

    assert get_blob_store_config().api_root == "https://storage.example.com/v1"


@pytest.mark.usefixtures("blobstore_env")
def test_blob_store_config_requires_every_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BLOBSTORE_API_KEY")

    with pytest.raises(MissingConfigurationError, match="BLOBSTORE_API_KEY"):
        get_blob_store_config()

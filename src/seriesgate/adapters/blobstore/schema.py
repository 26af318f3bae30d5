"""Response schemas for the Appwrite-style storage API."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class StorageBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Storage %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class StoredFile(StorageBaseModel):
    id: str = Field(alias="$id")
    bucket_id: str | None = Field(default=None, alias="bucketId")
    name: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")
    size_original: int | None = Field(default=None, alias="sizeOriginal")
    created_at: datetime | None = Field(default=None, alias="$createdAt")


class FileList(StorageBaseModel):
    total: int = 0
    files: list[StoredFile] = Field(default_factory=list[StoredFile])


class StorageErrorBody(StorageBaseModel):
    message: str | None = None
    code: int | None = None
    type: str | None = None

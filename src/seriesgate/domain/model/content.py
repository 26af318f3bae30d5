"""Gradable papers and per-series media assets."""

from __future__ import annotations

from dataclasses import dataclass

from seriesgate.domain.model.entity import Entity
from seriesgate.domain.model.enums import MediaKind, MediaStatus, PaperStatus, PaperType


@dataclass(eq=False, kw_only=True)
class Paper(Entity):
    """One gradable document unit.

    ``series_ref`` is whichever representation was in effect at upload time;
    ``series_instance`` is only meaningful for the multi-instance tier.
    """

    series_ref: str
    group: str
    subject: str
    paper_type: PaperType
    series_instance: str | None = None
    paper_number: int = 1
    status: PaperStatus = PaperStatus.PUBLISHED
    blob_id: str | None = None
    public_url: str | None = None
    file_name: str | None = None

    @property
    def is_published(self) -> bool:
        return self.status is PaperStatus.PUBLISHED


@dataclass(eq=False, kw_only=True)
class MediaAsset(Entity):
    series_ref: str
    kind: MediaKind
    blob_id: str
    public_url: str | None = None
    file_name: str | None = None
    status: MediaStatus = MediaStatus.ACTIVE
    previous_blob_id: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status is MediaStatus.ACTIVE

    def archive(self) -> None:
        self.status = MediaStatus.ARCHIVED
        self.previous_blob_id = self.blob_id
        self.touch()

    def reactivate(self) -> None:
        self.status = MediaStatus.ACTIVE
        self.touch()

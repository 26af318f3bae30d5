"""Pre-upload checks for series media."""

from __future__ import annotations

import secrets
import time
from typing import Final

from seriesgate.domain.errors import MediaUploadRejected
from seriesgate.domain.model import MediaKind

MEGABYTE: Final[int] = 1024 * 1024

MAX_UPLOAD_BYTES: Final[dict[MediaKind, int]] = {
    MediaKind.VIDEO: 100 * MEGABYTE,
    MediaKind.THUMBNAIL: 50 * MEGABYTE,
}

ALLOWED_CONTENT_TYPES: Final[dict[MediaKind, frozenset[str]]] = {
    MediaKind.VIDEO: frozenset({"video/mp4", "video/webm", "video/quicktime"}),
    MediaKind.THUMBNAIL: frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"}),
}


def validate_upload(kind: str | MediaKind, content_type: str | None, size_bytes: int) -> MediaKind:
    """Return the parsed kind or raise :class:`MediaUploadRejected`."""

    try:
        parsed = kind if isinstance(kind, MediaKind) else MediaKind.parse(kind)
    except ValueError as exc:
        raise MediaUploadRejected(
            f"Invalid media type {kind!r}. Must be 'video' or 'image'"
        ) from exc

    if size_bytes <= 0:
        raise MediaUploadRejected("No file provided")

    limit = MAX_UPLOAD_BYTES[parsed]
    if size_bytes > limit:
        raise MediaUploadRejected(
            f"{parsed} file too large. Maximum {limit // MEGABYTE}MB allowed."
        )

    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime not in ALLOWED_CONTENT_TYPES[parsed]:
        raise MediaUploadRejected(f"Invalid {parsed} format. MIME type: {content_type}")
    return parsed


def new_blob_id(kind: MediaKind) -> str:
    """Storage id shaped ``<kind>_<epoch millis>_<random>``."""

    return f"{kind}_{int(time.time() * 1000)}_{secrets.token_hex(3)}"

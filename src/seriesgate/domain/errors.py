"""Domain error taxonomy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from seriesgate.domain.ports.blobs import StoredBlob


class SeriesGateError(Exception):
    """Base class for engine errors."""


class UnknownSeries(SeriesGateError):  # noqa: N818
    """Raised when an identifier matches neither a managed record nor a tier code."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Unknown test series: {identifier!r}")
        self.identifier = identifier


class InvalidSelection(SeriesGateError):  # noqa: N818
    """Raised only when a caller opts into strict selection validation."""

    def __init__(self, errors: tuple[str, ...]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class TransactionConflict(SeriesGateError):  # noqa: N818
    """Raised when a commit loses against a concurrent writer or a constraint."""


class MaterializationError(SeriesGateError):
    """Raised when a managed record could not be created or re-read."""


class PurchaseStateError(SeriesGateError):
    """Raised on an illegal purchase record transition."""


class MediaMetadataSaveError(SeriesGateError):
    """Raised when neither the transactional nor the fallback media save succeeded.

    The blob itself was stored; ``blob`` identifies it for out-of-band cleanup.
    """

    def __init__(self, message: str, *, blob: StoredBlob) -> None:
        super().__init__(message)
        self.blob = blob


class BlobStoreError(SeriesGateError):
    """Raised by blob store adapters when a storage call fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MediaUploadRejected(SeriesGateError):  # noqa: N818
    """Raised when an upload fails validation before any blob is written."""

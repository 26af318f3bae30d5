"""Purchase records (enrollments)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from seriesgate.domain.errors import PurchaseStateError
from seriesgate.domain.model.entity import Entity, utcnow
from seriesgate.domain.model.enums import PaymentStatus, ResourceType

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

DEFAULT_TEST_SERIES_VALIDITY = timedelta(days=60)


def normalize_tokens(tokens: Iterable[str]) -> list[str]:
    """Strip blanks and duplicates while keeping first-seen order."""

    seen: set[str] = set()
    ordered: list[str] = []
    for token in tokens:
        cleaned = token.strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        ordered.append(cleaned)
    return ordered


@dataclass(eq=False, kw_only=True)
class Enrollment(Entity):
    """One grant of access by one user to one resource.

    ``resource_ref`` holds either a shorthand code or a managed record key;
    both forms coexist in storage. An empty ``purchased_subjects`` list means
    the purchase covers every subject.
    """

    user_id: str
    resource_type: ResourceType
    resource_ref: str
    amount: int
    payment_status: PaymentStatus = PaymentStatus.PENDING
    purchased_subjects: list[str] = field(default_factory=list[str])
    payment_id: str | None = None
    transaction_date: datetime | None = None
    expiry_date: datetime | None = None
    progress: int = 0

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        self.purchased_subjects = normalize_tokens(self.purchased_subjects)

    @property
    def is_paid(self) -> bool:
        return self.payment_status is PaymentStatus.PAID

    def mark_paid(
        self,
        *,
        payment_id: str,
        purchased_subjects: Iterable[str] | None = None,
        now: datetime | None = None,
        validity: timedelta | None = DEFAULT_TEST_SERIES_VALIDITY,
    ) -> None:
        if self.payment_status is not PaymentStatus.PENDING:
            raise PurchaseStateError(
                f"Cannot confirm payment for enrollment in state {self.payment_status}"
            )
        moment = now or utcnow()
        self.payment_status = PaymentStatus.PAID
        self.payment_id = payment_id
        self.transaction_date = moment
        if purchased_subjects is not None:
            self.purchased_subjects = normalize_tokens(purchased_subjects)
        if (
            self.resource_type is ResourceType.TEST_SERIES
            and self.expiry_date is None
            and validity is not None
        ):
            self.expiry_date = moment + validity
        self.touch()

    def mark_failed(self) -> None:
        if self.payment_status is not PaymentStatus.PENDING:
            raise PurchaseStateError(
                f"Cannot fail enrollment in state {self.payment_status}"
            )
        self.payment_status = PaymentStatus.FAILED
        self.touch()

    def refund(self) -> None:
        if self.payment_status is not PaymentStatus.PAID:
            raise PurchaseStateError(f"Cannot refund enrollment in state {self.payment_status}")
        self.payment_status = PaymentStatus.REFUNDED
        self.touch()

    def record_progress(self, progress: int) -> None:
        if not 0 <= progress <= 100:  # noqa: PLR2004
            raise ValueError("Progress must be between 0 and 100")
        self.progress = progress
        self.touch()

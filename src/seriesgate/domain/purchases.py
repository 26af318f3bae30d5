"""Purchase record lifecycle: checkout intent and payment confirmation."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from seriesgate.domain.errors import PurchaseStateError
from seriesgate.domain.model import Enrollment, ResourceType, normalize_tokens

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID

    from seriesgate.domain.catalog_registry import CatalogRegistry
    from seriesgate.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)


class PurchaseService:
    """Creates pending test-series purchases and applies payment outcomes.

    Records are written under the reference the series currently resolves to:
    the persisted key when a managed record exists, the lowercase shorthand
    otherwise. Entitlement checks read both forms.
    """

    def __init__(self, registry: CatalogRegistry, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._registry = registry
        self._unit_of_work_factory = unit_of_work_factory

    def open_checkout(
        self,
        user_id: str,
        identifier: str,
        *,
        amount: int,
        purchased_subjects: Iterable[str] = (),
    ) -> Enrollment:
        key = self._registry.resolve_with(identifier, self._unit_of_work_factory)
        reference = key.reference
        subjects = normalize_tokens(purchased_subjects)

        with self._unit_of_work_factory() as uow:
            repository = uow.repositories.enrollments
            enrollment = repository.find_pending(
                user_id=user_id,
                resource_type=ResourceType.TEST_SERIES,
                reference=reference,
            )
            if enrollment is None:
                enrollment = Enrollment(
                    user_id=user_id,
                    resource_type=ResourceType.TEST_SERIES,
                    resource_ref=reference,
                    amount=amount,
                    purchased_subjects=subjects,
                )
                repository.add(enrollment)
                log.info("Opened checkout %s for user %s on %s", enrollment.id, user_id, reference)
            else:
                if amount < 0:
                    raise ValueError("Amount cannot be negative")
                enrollment.amount = amount
                enrollment.purchased_subjects = subjects
                enrollment.touch()
                log.info("Reusing pending checkout %s for user %s", enrollment.id, user_id)
            uow.commit()
        return enrollment

    def confirm_payment(
        self,
        enrollment_id: UUID,
        payment_id: str,
        purchased_subjects: Iterable[str] | None = None,
        *,
        now: datetime | None = None,
    ) -> Enrollment:
        with self._unit_of_work_factory() as uow:
            enrollment = self._require(uow.repositories.enrollments.get(enrollment_id), enrollment_id)
            enrollment.mark_paid(
                payment_id=payment_id,
                purchased_subjects=purchased_subjects,
                now=now,
            )
            uow.commit()
        log.info(
            "Payment %s confirmed for enrollment %s (subjects: %s)",
            payment_id,
            enrollment_id,
            enrollment.purchased_subjects or "all",
        )
        return enrollment

    def fail_payment(self, enrollment_id: UUID) -> Enrollment:
        with self._unit_of_work_factory() as uow:
            enrollment = self._require(uow.repositories.enrollments.get(enrollment_id), enrollment_id)
            enrollment.mark_failed()
            uow.commit()
        log.info("Payment failed for enrollment %s", enrollment_id)
        return enrollment

    def refund(self, enrollment_id: UUID) -> Enrollment:
        with self._unit_of_work_factory() as uow:
            enrollment = self._require(uow.repositories.enrollments.get(enrollment_id), enrollment_id)
            enrollment.refund()
            uow.commit()
        log.info("Enrollment %s refunded", enrollment_id)
        return enrollment

    @staticmethod
    def _require(enrollment: Enrollment | None, enrollment_id: UUID) -> Enrollment:
        if enrollment is None:
            raise PurchaseStateError(f"Unknown enrollment: {enrollment_id}")
        return enrollment

"""Receive document use case."""

from collections.abc import Callable
from datetime import datetime

import structlog

from gstlifecycle.application.dto.transition_dto import ReceiveRequest, TransitionResult
from gstlifecycle.application.use_cases.transition.apply_transition import utc_now
from gstlifecycle.application.use_cases.transition.gateway_submission import new_audit_record
from gstlifecycle.domain.entities import DocumentSnapshot
from gstlifecycle.domain.exceptions import ConflictFault
from gstlifecycle.domain.value_objects import (
    AuditOutcome,
    DocumentKind,
    DocumentStatus,
    TransitionKind,
)

logger = structlog.get_logger(__name__)


class ReceiveDocumentUseCase:
    """Register an E-Way Bill generated by a supplier against us.

    The receipt time is taken from the server clock; it anchors the
    acceptance window.
    """

    def __init__(
        self,
        unit_of_work_factory: type,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock

    async def execute(self, user_id: str | None, request: ReceiveRequest) -> TransitionResult:
        number = request.document_number.strip()
        if not number:
            return TransitionResult.invalid_payload("document_number is required")

        now = self._clock()
        snapshot = DocumentSnapshot(
            number=number,
            kind=DocumentKind.EWAY_BILL,
            status=DocumentStatus.RECEIVED,
            created_at=now,
            status_changed_at=now,
            updated_at=now,
            payload=dict(request.payload),
            valid_until=request.valid_until,
        )
        record = new_audit_record(number, TransitionKind.RECEIVE, AuditOutcome.APPLIED, now, user_id)
        try:
            async with self._uow_factory() as uow:
                await uow.documents.create(snapshot)
                await uow.audit.append(record)
        except ConflictFault:
            failed = new_audit_record(
                number, TransitionKind.RECEIVE, AuditOutcome.FAILED, now, user_id,
                rule="conflict", message="Document number already stored",
            )
            async with self._uow_factory() as uow:
                await uow.audit.append(failed)
            raise

        logger.info("Document received", document_number=number, actor=user_id)
        return TransitionResult(applied=True, snapshot=snapshot, audit_record=record)

"""Get document use case."""

from collections.abc import Callable
from datetime import datetime

from gstlifecycle.application.dto.document_dto import DocumentOutput
from gstlifecycle.application.use_cases.transition.apply_transition import utc_now
from gstlifecycle.domain.entities import DocumentSnapshot
from gstlifecycle.domain.exceptions import NotFound
from gstlifecycle.domain.services import transition_rules as rules
from gstlifecycle.domain.value_objects import DocumentStatus


class GetDocumentUseCase:
    """Get document by number, with audit trail and open action windows."""

    def __init__(
        self,
        unit_of_work_factory: type,
        acceptance_window_hours: float = rules.ACCEPTANCE_WINDOW_HOURS,
        cancellation_window_hours: float = rules.CANCELLATION_WINDOW_HOURS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._acceptance_window = acceptance_window_hours
        self._cancellation_window = cancellation_window_hours
        self._clock = clock

    async def execute(self, document_number: str) -> DocumentOutput:
        """Get document by number."""
        async with self._uow_factory() as uow:
            snapshot = await uow.documents.get_by_number(document_number)
            if snapshot is None:
                raise NotFound("Document", document_number)
            audit_trail = await uow.audit.list_for_document(document_number)

        return DocumentOutput(
            number=snapshot.number,
            kind=snapshot.kind,
            status=snapshot.status,
            created_at=snapshot.created_at,
            status_changed_at=snapshot.status_changed_at,
            updated_at=snapshot.updated_at,
            version=snapshot.version,
            valid_until=snapshot.valid_until,
            payload=snapshot.payload,
            vehicle_history=snapshot.vehicle_history,
            audit_trail=audit_trail,
            hours_remaining=self._hours_remaining(snapshot),
        )

    def _hours_remaining(self, snapshot: DocumentSnapshot) -> dict[str, float]:
        now = self._clock()
        since = snapshot.status_changed_at
        if snapshot.status == DocumentStatus.RECEIVED:
            left = rules.hours_remaining(now, since, self._acceptance_window)
            return {"accept": left, "reject": left}
        if snapshot.status in (DocumentStatus.ACTIVE, DocumentStatus.GENERATED):
            return {"cancel": rules.hours_remaining(now, since, self._cancellation_window)}
        return {}

"""Audit record entity."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from gstlifecycle.domain.value_objects import AuditOutcome, TransitionKind


@dataclass(frozen=True)
class AuditRecord:
    """Immutable record of one transition attempt."""

    id: UUID
    document_number: str
    transition: TransitionKind
    outcome: AuditOutcome
    created_at: datetime
    rule: str | None = None
    message: str | None = None
    correlation_id: str | None = None
    actor: str | None = None

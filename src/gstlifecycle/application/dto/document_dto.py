"""Document DTOs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from gstlifecycle.domain.entities import AuditRecord, VehicleHistoryEntry
from gstlifecycle.domain.value_objects import DocumentKind, DocumentStatus


@dataclass
class DocumentOutput:
    """Output DTO for a document with its audit trail."""

    number: str
    kind: DocumentKind
    status: DocumentStatus
    created_at: datetime
    status_changed_at: datetime
    updated_at: datetime
    version: int
    valid_until: datetime | None
    payload: dict[str, Any]
    vehicle_history: list[VehicleHistoryEntry]
    audit_trail: list[AuditRecord] = field(default_factory=list)
    # open time window for the next action, e.g. {"cancel": 12.5}
    hours_remaining: dict[str, float] = field(default_factory=dict)

"""Domain entities."""

from gstlifecycle.domain.entities.audit_record import AuditRecord
from gstlifecycle.domain.entities.document import DocumentSnapshot
from gstlifecycle.domain.entities.vehicle_history import VehicleHistoryEntry

__all__ = [
    "AuditRecord",
    "DocumentSnapshot",
    "VehicleHistoryEntry",
]

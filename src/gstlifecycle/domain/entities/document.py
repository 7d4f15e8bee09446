"""Compliance document snapshot entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from gstlifecycle.domain.entities.vehicle_history import VehicleHistoryEntry
from gstlifecycle.domain.value_objects import DocumentKind, DocumentStatus


@dataclass
class DocumentSnapshot:
    """Authoritative state of one compliance document at one point in time.

    ``status_changed_at`` anchors every time-window rule: for a RECEIVED
    E-Way Bill it is the receipt time, for an ACTIVE or GENERATED document the
    generation time. ``version`` is bumped on every applied transition and is
    the compare-and-swap token for conditional replace.
    """

    number: str
    kind: DocumentKind
    status: DocumentStatus
    created_at: datetime
    status_changed_at: datetime
    updated_at: datetime
    version: int = 1
    payload: dict[str, Any] = field(default_factory=dict)
    vehicle_history: list[VehicleHistoryEntry] = field(default_factory=list)
    valid_until: datetime | None = None

"""Typed transition payloads.

Fields the caller may leave out are ``None``; whether that is acceptable is
decided by the transition rules, not here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class RejectPayload:
    reason: str | None = None


@dataclass(frozen=True)
class VehicleUpdatePayload:
    """Part-B update. ``distance == 0`` is a value; ``None`` means not given."""

    transport_mode: str | None = None
    distance: int | None = None
    vehicle_number: str | None = None
    transporter_id: str | None = None
    transporter_name: str | None = None
    vehicle_type: str | None = None
    trans_doc_no: str | None = None
    trans_doc_date: str | None = None


@dataclass(frozen=True)
class CancelPayload:
    reason_code: str | None = None
    remarks: str | None = None


@dataclass(frozen=True)
class TransporterChangePayload:
    transporter_id: str | None = None
    transporter_name: str | None = None


@dataclass(frozen=True)
class ValidityExtensionPayload:
    reason: str | None = None
    current_location: str | None = None
    new_valid_until: datetime | None = None


@dataclass(frozen=True)
class GeneratePayload:
    """Document data for generation. ``raw`` is forwarded to the gateway as-is."""

    document_number: str | None = None
    document_type: str | None = None
    document_date: str | None = None
    seller_gstin: str | None = None
    buyer_gstin: str | None = None
    items: list[dict[str, Any]] = field(default_factory=list)
    transport_mode: str | None = None
    distance: int | None = None
    vehicle_number: str | None = None
    vehicle_type: str | None = None
    round_off: Any = None
    cess: Any = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EmptyPayload:
    """Transitions that need no caller data (accept, expire)."""

"""Transition request/result DTOs and payload parsing."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from gstlifecycle.domain.entities import AuditRecord, DocumentSnapshot
from gstlifecycle.domain.exceptions import ValidationFault
from gstlifecycle.domain.value_objects import (
    CancelPayload,
    DenyReason,
    DocumentKind,
    EmptyPayload,
    GeneratePayload,
    RejectPayload,
    TransitionKind,
    TransporterChangePayload,
    ValidityExtensionPayload,
    VehicleUpdatePayload,
)

IST = timezone(timedelta(hours=5, minutes=30), "IST")

Payload = (
    EmptyPayload
    | RejectPayload
    | VehicleUpdatePayload
    | CancelPayload
    | TransporterChangePayload
    | ValidityExtensionPayload
    | GeneratePayload
)


@dataclass
class TransitionRequest:
    """Caller intent to move a document to a new state.

    ``observed_at`` is the time the caller believes the current status was
    entered. It is advisory only; rules use the stored timestamp.
    """

    document_number: str
    kind: TransitionKind
    payload: Mapping[str, Any] = field(default_factory=dict)
    observed_at: datetime | None = None


@dataclass
class GenerateRequest:
    """Request to generate a new E-Way Bill or IRN."""

    kind: DocumentKind
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class ReceiveRequest:
    """An inbound E-Way Bill raised by a supplier against this GSTIN."""

    document_number: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    valid_until: datetime | None = None


@dataclass
class TransitionResult:
    """Applied transition, or a denial (rule or gateway) with reason and message."""

    applied: bool
    snapshot: DocumentSnapshot | None = None
    audit_record: AuditRecord | None = None
    reason: str | None = None
    message: str | None = None

    @classmethod
    def invalid_payload(cls, message: str) -> "TransitionResult":
        return cls(applied=False, reason=DenyReason.INVALID_PAYLOAD.value, message=message)


@dataclass
class ConsolidateRequest:
    """E-Way Bills to carry in one vehicle under a consolidated E-Way Bill."""

    document_numbers: Any = field(default_factory=list)


@dataclass
class ConsolidationResult:
    """Consolidated E-Way Bill number and updated members, or a denial.

    Carries one audit record per member document.
    """

    applied: bool
    consolidated_number: str | None = None
    documents: list[DocumentSnapshot] = field(default_factory=list)
    audit_records: list[AuditRecord] = field(default_factory=list)
    reason: str | None = None
    message: str | None = None

    @classmethod
    def invalid_payload(cls, message: str) -> "ConsolidationResult":
        return cls(applied=False, reason=DenyReason.INVALID_PAYLOAD.value, message=message)


def parse_document_numbers(raw: Any) -> list[str]:
    """Trimmed document numbers in request order, duplicates dropped."""
    if not isinstance(raw, list) or any(
        isinstance(n, bool) or not isinstance(n, (str, int)) for n in raw
    ):
        raise ValidationFault(
            "document_numbers must be a list of E-Way Bill numbers", field="document_numbers"
        )
    numbers: list[str] = []
    for value in raw:
        number = str(value).strip()
        if number and number not in numbers:
            numbers.append(number)
    if not numbers:
        raise ValidationFault("document_numbers is required", field="document_numbers")
    return numbers


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _text(raw: Mapping[str, Any], *keys: str) -> str | None:
    value = _pick(raw, *keys)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationFault(f"{keys[0]} must be a string", field=keys[0])
    if isinstance(value, (str, int)):
        return str(value)
    raise ValidationFault(f"{keys[0]} must be a string", field=keys[0])


def _code(raw: Mapping[str, Any], *keys: str) -> str | None:
    """Master code such as a transport mode. Blank counts as absent."""
    value = _text(raw, *keys)
    return (value.strip() or None) if value is not None else None


def _integer(raw: Mapping[str, Any], *keys: str) -> int | None:
    value = _pick(raw, *keys)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValidationFault(f"{keys[0]} must be a whole number", field=keys[0])
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationFault(f"{keys[0]} must be a whole number", field=keys[0]) from None
    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationFault(f"{keys[0]} must be a whole number", field=keys[0])
    return int(number)


def parse_datetime(value: Any, field_name: str = "datetime") -> datetime | None:
    """ISO 8601 or ``dd/MM/yyyy [HH:mm[:ss]]``. Naive values are taken as IST."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = _parse_datetime_text(value.strip(), field_name)
    else:
        raise ValidationFault(f"{field_name} must be a date string", field=field_name)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=IST)
    return parsed


def _parse_datetime_text(text: str, field_name: str) -> datetime:
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in ("%d/%m/%Y %H:%M:%S", "%d/%m/%Y %I:%M:%S %p", "%d/%m/%Y %H:%M"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        # date only: valid until the end of that day
        return datetime.strptime(text, "%d/%m/%Y").replace(hour=23, minute=59)
    except ValueError:
        raise ValidationFault(
            f"{field_name} must be ISO 8601 or dd/MM/yyyy HH:mm", field=field_name
        ) from None


def _require_mapping(raw: Any) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationFault("Payload must be an object")
    return raw


def parse_transition_payload(kind: TransitionKind, raw: Any) -> Payload:
    """Turn a raw request body into the typed payload for ``kind``.

    Raises ``ValidationFault`` for values of the wrong shape. Absent fields
    stay ``None`` and are judged by the transition rules.
    """
    data = _require_mapping(raw)
    if kind in (TransitionKind.ACCEPT, TransitionKind.EXPIRE):
        return EmptyPayload()
    if kind == TransitionKind.REJECT:
        return RejectPayload(reason=_text(data, "reason", "rejectReason"))
    if kind == TransitionKind.UPDATE_VEHICLE:
        return VehicleUpdatePayload(
            transport_mode=_code(data, "transport_mode", "transMode"),
            distance=_integer(data, "distance"),
            vehicle_number=_text(data, "vehicle_number", "vehicleNo"),
            transporter_id=_text(data, "transporter_id", "transporterId"),
            transporter_name=_text(data, "transporter_name", "transporterName"),
            vehicle_type=_code(data, "vehicle_type", "vehicleType"),
            trans_doc_no=_text(data, "trans_doc_no", "transDocNo"),
            trans_doc_date=_text(data, "trans_doc_date", "transDocDate"),
        )
    if kind == TransitionKind.CANCEL:
        return CancelPayload(
            reason_code=_text(data, "reason_code", "cancelReasonCode", "reason"),
            remarks=_text(data, "remarks", "cancelRemarks", "remark"),
        )
    if kind == TransitionKind.CHANGE_TRANSPORTER:
        return TransporterChangePayload(
            transporter_id=_text(data, "transporter_id", "newTransporterId"),
            transporter_name=_text(data, "transporter_name", "newTransporterName"),
        )
    if kind == TransitionKind.EXTEND_VALIDITY:
        return ValidityExtensionPayload(
            reason=_text(data, "reason", "extendReason"),
            current_location=_text(data, "current_location", "currentLocation"),
            new_valid_until=parse_datetime(
                _pick(data, "new_valid_until", "newValidUntil"), "new_valid_until"
            ),
        )
    if kind == TransitionKind.GENERATE:
        return parse_generate_payload(data)
    raise ValidationFault(f"Unsupported transition: {kind}")


def parse_generate_payload(raw: Any) -> GeneratePayload:
    data = _require_mapping(raw)
    items = _pick(data, "items", "itemList")
    if items is None:
        items = []
    if not isinstance(items, list) or not all(isinstance(i, Mapping) for i in items):
        raise ValidationFault("items must be a list of objects", field="items")
    for party in ("seller", "buyer"):
        if data.get(party) and not isinstance(data[party], Mapping):
            raise ValidationFault(f"{party} must be an object", field=party)
    return GeneratePayload(
        document_number=_text(data, "document_number", "docNo"),
        document_type=_text(data, "document_type", "docType"),
        document_date=_text(data, "document_date", "docDate"),
        seller_gstin=_text(data, "seller_gstin", "fromGstin"),
        buyer_gstin=_text(data, "buyer_gstin", "toGstin"),
        items=[dict(i) for i in items],
        transport_mode=_code(data, "transport_mode", "transMode"),
        distance=_integer(data, "distance"),
        vehicle_number=_text(data, "vehicle_number", "vehicleNo"),
        vehicle_type=_code(data, "vehicle_type", "vehicleType"),
        round_off=_pick(data, "round_off", "rndOffAmt"),
        cess=_pick(data, "cess", "cessValue"),
        raw=dict(data),
    )


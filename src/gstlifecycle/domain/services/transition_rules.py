"""Transition rules for E-Way Bills and E-Invoices.

Each ``check_*`` function is a pure predicate returning a ``RuleDecision``.
Time windows are measured from timestamps recorded on the stored snapshot
against an injected ``now``; nothing supplied by the caller is used as a
window anchor. Window bounds are inclusive: an elapsed time equal to the
window is still allowed, anything strictly greater is denied.
"""

import re
from collections.abc import Sequence
from datetime import datetime, timedelta

from gstlifecycle.domain.entities import DocumentSnapshot
from gstlifecycle.domain.value_objects import (
    CancelPayload,
    DenyReason,
    DocumentKind,
    DocumentStatus,
    GeneratePayload,
    RejectPayload,
    RuleDecision,
    TransporterChangePayload,
    ValidityExtensionPayload,
    VehicleUpdatePayload,
)

ACCEPTANCE_WINDOW_HOURS = 72.0
CANCELLATION_WINDOW_HOURS = 24.0
VALIDITY_EXTENSION_HOURS = 72.0
MIN_REASON_LENGTH = 10
MIN_LOCATION_LENGTH = 3
MIN_CONSOLIDATED_BILLS = 2

TRANSPORT_MODES = {"1": "Road", "2": "Rail", "3": "Air", "4": "Ship"}
VEHICLE_TYPES = {"R": "Regular", "O": "Over Dimensional Cargo"}
EWAY_CANCEL_REASONS = {
    "1": "Duplicate",
    "2": "Data Entry Mistake",
    "3": "Order Cancelled",
    "4": "Goods Not Moved",
    "5": "Other",
}
IRN_CANCEL_REASONS = {
    "1": "Duplicate",
    "2": "Data Entry Mistake",
    "3": "Order Cancelled",
    "4": "Other",
}
IRN_OTHER_REASON = "4"
EWAY_DOCUMENT_TYPES = {"INV", "CHL", "BIL", "BOE"}
INVOICE_DOCUMENT_TYPES = {"INV", "CRN", "DBN"}
UNREGISTERED_PERSON = "URP"

# km covered per day of validity
_KM_PER_DAY_REGULAR = 200
_KM_PER_DAY_ODC = 20

VEHICLE_NUMBER_PATTERN = re.compile(r"^[A-Z]{2}[0-9]{1,2}[A-Z]{1,2}[0-9]{4}$")
GSTIN_LENGTH = 15
HSN_PATTERN = re.compile(r"^[0-9]{4,8}$")


def normalize_vehicle_number(vehicle_number: str) -> str:
    """Upper-case and strip all whitespace: ``"mh 12 ab 1234"`` -> ``"MH12AB1234"``."""
    return re.sub(r"\s", "", vehicle_number).upper()


def window_exceeded(now: datetime, since: datetime, window_hours: float) -> bool:
    """True when strictly more than ``window_hours`` have passed since ``since``."""
    return now - since > timedelta(hours=window_hours)


def hours_elapsed(now: datetime, since: datetime) -> float:
    return (now - since).total_seconds() / 3600


def hours_remaining(now: datetime, since: datetime, window_hours: float) -> float:
    """Hours left in a window, to one decimal; 0 once it has closed."""
    return max(0.0, round(window_hours - hours_elapsed(now, since), 1))


def validity_days(distance: int, vehicle_type: str | None = None) -> int:
    """Days of validity for a movement of ``distance`` km (minimum one day)."""
    per_day = _KM_PER_DAY_ODC if vehicle_type == "O" else _KM_PER_DAY_REGULAR
    if distance <= 0:
        return 1
    return -(-distance // per_day)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _require_kind(snapshot: DocumentSnapshot, kind: DocumentKind, action: str) -> RuleDecision | None:
    if snapshot.kind != kind:
        return RuleDecision.deny(
            DenyReason.UNSUPPORTED_KIND,
            f"{action} is not supported for {snapshot.kind.value} documents",
        )
    return None


def _require_status(
    snapshot: DocumentSnapshot, status: DocumentStatus, action: str
) -> RuleDecision | None:
    if snapshot.status != status:
        return RuleDecision.deny(
            DenyReason.INVALID_STATUS,
            f"Only {status.value} documents can be {action}. "
            f"Current status: {snapshot.status.value}",
        )
    return None


def _require_within_validity(snapshot: DocumentSnapshot, now: datetime) -> RuleDecision | None:
    if snapshot.valid_until is not None and now > snapshot.valid_until:
        return RuleDecision.deny(
            DenyReason.VALIDITY_EXPIRED,
            "E-Way Bill validity has expired",
        )
    return None


def _check_received_window(
    snapshot: DocumentSnapshot, now: datetime, window_hours: float, action: str
) -> RuleDecision | None:
    if window_exceeded(now, snapshot.status_changed_at, window_hours):
        return RuleDecision.deny(
            DenyReason.WINDOW_EXPIRED,
            f"E-Way Bill {action} is allowed only within {window_hours:g} hours of receipt. "
            f"The {window_hours:g}-hour period has expired.",
        )
    return None


def check_accept(
    snapshot: DocumentSnapshot,
    now: datetime,
    window_hours: float = ACCEPTANCE_WINDOW_HOURS,
) -> RuleDecision:
    """A received E-Way Bill may be accepted within the acceptance window."""
    return (
        _require_kind(snapshot, DocumentKind.EWAY_BILL, "Acceptance")
        or _require_status(snapshot, DocumentStatus.RECEIVED, "accepted")
        or _check_received_window(snapshot, now, window_hours, "acceptance")
        or RuleDecision.allow()
    )


def check_reject(
    snapshot: DocumentSnapshot,
    payload: RejectPayload,
    now: datetime,
    window_hours: float = ACCEPTANCE_WINDOW_HOURS,
) -> RuleDecision:
    """Like accept, plus a reject reason of at least ten characters."""
    denial = (
        _require_kind(snapshot, DocumentKind.EWAY_BILL, "Rejection")
        or _require_status(snapshot, DocumentStatus.RECEIVED, "rejected")
        or _check_received_window(snapshot, now, window_hours, "rejection")
    )
    if denial:
        return denial
    if payload.reason is None or len(payload.reason.strip()) < MIN_REASON_LENGTH:
        return RuleDecision.deny(
            DenyReason.REASON_TOO_SHORT,
            f"Reject reason is mandatory and must be at least {MIN_REASON_LENGTH} characters",
        )
    return RuleDecision.allow()


def check_update_vehicle(
    snapshot: DocumentSnapshot,
    payload: VehicleUpdatePayload,
    now: datetime,
) -> RuleDecision:
    """Part-B update on an active E-Way Bill. Allowed any number of times.

    Road transport needs a vehicle number; other modes accept a transport
    document number and date instead.
    """
    denial = (
        _require_kind(snapshot, DocumentKind.EWAY_BILL, "Vehicle update")
        or _require_status(snapshot, DocumentStatus.ACTIVE, "updated")
        or _require_within_validity(snapshot, now)
    )
    if denial:
        return denial

    mode = (payload.transport_mode or "").strip()
    has_vehicle = not _blank(payload.vehicle_number)
    has_trans_doc = not _blank(payload.trans_doc_no) and not _blank(payload.trans_doc_date)
    missing = []
    if not mode:
        missing.append("transport_mode")
    if payload.distance is None:
        missing.append("distance")
    if not has_vehicle and (mode == "1" or not has_trans_doc):
        missing.append("vehicle_number")
    if missing:
        return RuleDecision.deny(
            DenyReason.MISSING_FIELDS,
            f"Missing required fields: {', '.join(missing)}",
        )

    if mode not in TRANSPORT_MODES:
        return RuleDecision.deny(
            DenyReason.INVALID_FIELD,
            f"Unknown transport mode: {payload.transport_mode}",
        )
    if payload.distance < 0:
        return RuleDecision.deny(DenyReason.INVALID_FIELD, "Distance cannot be negative")
    if payload.vehicle_type is not None and payload.vehicle_type not in VEHICLE_TYPES:
        return RuleDecision.deny(
            DenyReason.INVALID_FIELD,
            f"Unknown vehicle type: {payload.vehicle_type}",
        )
    if has_vehicle and not VEHICLE_NUMBER_PATTERN.match(
        normalize_vehicle_number(payload.vehicle_number)
    ):
        return RuleDecision.deny(
            DenyReason.INVALID_FIELD,
            "Vehicle number must be in format: XX##XX#### (e.g., MH12AB1234)",
        )
    return RuleDecision.allow()


def check_cancel(
    snapshot: DocumentSnapshot,
    payload: CancelPayload,
    now: datetime,
    window_hours: float = CANCELLATION_WINDOW_HOURS,
) -> RuleDecision:
    """Cancellation within the window after generation, with a valid reason."""
    if snapshot.kind == DocumentKind.EWAY_BILL:
        return _check_cancel_eway_bill(snapshot, payload, now, window_hours)
    return _check_cancel_irn(snapshot, payload, now, window_hours)


def _check_cancel_eway_bill(
    snapshot: DocumentSnapshot,
    payload: CancelPayload,
    now: datetime,
    window_hours: float,
) -> RuleDecision:
    denial = _require_status(snapshot, DocumentStatus.ACTIVE, "cancelled")
    if denial:
        return denial
    if window_exceeded(now, snapshot.status_changed_at, window_hours):
        return RuleDecision.deny(
            DenyReason.WINDOW_EXPIRED,
            f"E-Way Bill cancellation is allowed only within {window_hours:g} hours of generation. "
            f"The {window_hours:g}-hour period has expired.",
        )
    if snapshot.vehicle_history:
        return RuleDecision.deny(
            DenyReason.MOVEMENT_STARTED,
            "Goods movement has started. E-Way Bill cannot be cancelled once vehicle details are updated.",
        )
    if _blank(payload.reason_code):
        return RuleDecision.deny(DenyReason.MISSING_FIELDS, "Cancel reason code is mandatory")
    if payload.reason_code.strip() not in EWAY_CANCEL_REASONS:
        return RuleDecision.deny(
            DenyReason.INVALID_FIELD,
            f"Unknown cancel reason code: {payload.reason_code}",
        )
    if payload.remarks is None or len(payload.remarks.strip()) < MIN_REASON_LENGTH:
        return RuleDecision.deny(
            DenyReason.REASON_TOO_SHORT,
            f"Cancel remarks are mandatory and must be at least {MIN_REASON_LENGTH} characters",
        )
    return RuleDecision.allow()


def _check_cancel_irn(
    snapshot: DocumentSnapshot,
    payload: CancelPayload,
    now: datetime,
    window_hours: float,
) -> RuleDecision:
    if snapshot.status == DocumentStatus.CANCELLED:
        return RuleDecision.deny(DenyReason.INVALID_STATUS, "This IRN is already cancelled")
    denial = _require_status(snapshot, DocumentStatus.GENERATED, "cancelled")
    if denial:
        return denial
    if window_exceeded(now, snapshot.status_changed_at, window_hours):
        return RuleDecision.deny(
            DenyReason.WINDOW_EXPIRED,
            f"IRN cancellation is allowed only within {window_hours:g} hours of generation. "
            f"The {window_hours:g}-hour period has expired.",
        )
    if _blank(payload.reason_code):
        return RuleDecision.deny(DenyReason.MISSING_FIELDS, "Cancel reason is required")
    reason_code = payload.reason_code.strip()
    if reason_code not in IRN_CANCEL_REASONS:
        return RuleDecision.deny(
            DenyReason.INVALID_FIELD,
            f"Unknown cancel reason code: {payload.reason_code}",
        )
    if reason_code == IRN_OTHER_REASON and _blank(payload.remarks):
        return RuleDecision.deny(
            DenyReason.MISSING_FIELDS,
            "Cancel remarks are required when reason is 'Other'",
        )
    return RuleDecision.allow()


def check_change_transporter(
    snapshot: DocumentSnapshot,
    payload: TransporterChangePayload,
    now: datetime,
) -> RuleDecision:
    denial = (
        _require_kind(snapshot, DocumentKind.EWAY_BILL, "Transporter change")
        or _require_status(snapshot, DocumentStatus.ACTIVE, "reassigned")
        or _require_within_validity(snapshot, now)
    )
    if denial:
        return denial
    if _blank(payload.transporter_id):
        return RuleDecision.deny(DenyReason.MISSING_FIELDS, "New Transporter ID is mandatory")
    if len(payload.transporter_id.strip()) != GSTIN_LENGTH:
        return RuleDecision.deny(
            DenyReason.INVALID_FIELD,
            "Transporter ID must be a valid 15-character GSTIN",
        )
    return RuleDecision.allow()


def check_extend_validity(
    snapshot: DocumentSnapshot,
    payload: ValidityExtensionPayload,
    now: datetime,
    max_extension_hours: float = VALIDITY_EXTENSION_HOURS,
) -> RuleDecision:
    """New validity must be in the future, after the current one, and within the allowed horizon."""
    denial = _require_kind(snapshot, DocumentKind.EWAY_BILL, "Validity extension") or _require_status(
        snapshot, DocumentStatus.ACTIVE, "extended"
    )
    if denial:
        return denial
    if payload.reason is None or len(payload.reason.strip()) < MIN_REASON_LENGTH:
        return RuleDecision.deny(
            DenyReason.REASON_TOO_SHORT,
            f"Reason is mandatory and must be at least {MIN_REASON_LENGTH} characters",
        )
    if payload.current_location is None or len(payload.current_location.strip()) < MIN_LOCATION_LENGTH:
        return RuleDecision.deny(
            DenyReason.MISSING_FIELDS,
            f"Current location is mandatory and must be at least {MIN_LOCATION_LENGTH} characters",
        )
    if payload.new_valid_until is None:
        return RuleDecision.deny(DenyReason.MISSING_FIELDS, "New validity date is mandatory")
    new_valid_until = payload.new_valid_until
    if new_valid_until <= now:
        return RuleDecision.deny(DenyReason.INVALID_FIELD, "New validity date must be in the future")
    if snapshot.valid_until is not None and new_valid_until <= snapshot.valid_until:
        return RuleDecision.deny(
            DenyReason.INVALID_FIELD,
            "New validity date must be after current validity date",
        )
    if new_valid_until > now + timedelta(hours=max_extension_hours):
        return RuleDecision.deny(
            DenyReason.INVALID_FIELD,
            f"E-Way Bill validity can be extended only up to {max_extension_hours:g} hours from current time",
        )
    return RuleDecision.allow()


def check_expire(snapshot: DocumentSnapshot, now: datetime) -> RuleDecision:
    denial = _require_kind(snapshot, DocumentKind.EWAY_BILL, "Expiry") or _require_status(
        snapshot, DocumentStatus.ACTIVE, "expired"
    )
    if denial:
        return denial
    if snapshot.valid_until is None or now <= snapshot.valid_until:
        return RuleDecision.deny(DenyReason.NOT_EXPIRED, "E-Way Bill is still within its validity")
    return RuleDecision.allow()


def check_generate(kind: DocumentKind, payload: GeneratePayload) -> RuleDecision:
    """Mandatory fields for generating a new E-Way Bill or IRN."""
    missing = [
        name
        for name in ("document_number", "document_type", "document_date", "seller_gstin", "buyer_gstin")
        if _blank(getattr(payload, name))
    ]
    if not payload.items:
        missing.append("items")
    if kind == DocumentKind.EWAY_BILL:
        if _blank(payload.transport_mode):
            missing.append("transport_mode")
        if payload.distance is None:
            missing.append("distance")
    if missing:
        return RuleDecision.deny(
            DenyReason.MISSING_FIELDS,
            f"Missing required fields: {', '.join(missing)}",
        )

    allowed_types = EWAY_DOCUMENT_TYPES if kind == DocumentKind.EWAY_BILL else INVOICE_DOCUMENT_TYPES
    if payload.document_type not in allowed_types:
        return RuleDecision.deny(
            DenyReason.INVALID_FIELD,
            f"Document type must be one of: {', '.join(sorted(allowed_types))}",
        )
    if len(payload.seller_gstin.strip()) != GSTIN_LENGTH:
        return RuleDecision.deny(DenyReason.INVALID_FIELD, "Seller GSTIN must be 15 characters")
    buyer = payload.buyer_gstin.strip()
    buyer_ok = len(buyer) == GSTIN_LENGTH or (
        kind == DocumentKind.EWAY_BILL and buyer == UNREGISTERED_PERSON
    )
    if not buyer_ok:
        return RuleDecision.deny(DenyReason.INVALID_FIELD, "Buyer GSTIN must be 15 characters")
    for position, item in enumerate(payload.items, 1):
        hsn = str(item.get("hsn_code") or "").strip()
        if not HSN_PATTERN.match(hsn):
            return RuleDecision.deny(
                DenyReason.INVALID_FIELD,
                f"Item {position}: HSN code must be 4 to 8 digits",
            )
    if kind == DocumentKind.EWAY_BILL:
        if payload.transport_mode.strip() not in TRANSPORT_MODES:
            return RuleDecision.deny(
                DenyReason.INVALID_FIELD,
                f"Unknown transport mode: {payload.transport_mode}",
            )
        if payload.distance <= 0:
            return RuleDecision.deny(DenyReason.INVALID_FIELD, "Distance must be greater than zero")
        if not _blank(payload.vehicle_number) and not VEHICLE_NUMBER_PATTERN.match(
            normalize_vehicle_number(payload.vehicle_number)
        ):
            return RuleDecision.deny(
                DenyReason.INVALID_FIELD,
                "Vehicle number must be in format: XX##XX#### (e.g., MH12AB1234)",
            )
    return RuleDecision.allow()


def check_consolidate(snapshots: Sequence[DocumentSnapshot], now: datetime) -> RuleDecision:
    """Two or more distinct E-Way Bills, all active and within validity."""
    if len({s.number for s in snapshots}) < MIN_CONSOLIDATED_BILLS:
        return RuleDecision.deny(
            DenyReason.MISSING_FIELDS,
            f"At least {MIN_CONSOLIDATED_BILLS} Active E-Way Bills are required "
            "to generate Consolidated E-Way Bill",
        )
    others = [s.number for s in snapshots if s.kind != DocumentKind.EWAY_BILL]
    if others:
        return RuleDecision.deny(
            DenyReason.UNSUPPORTED_KIND,
            f"Only E-Way Bills can be consolidated. Found: {', '.join(others)}",
        )
    inactive = [s.number for s in snapshots if s.status != DocumentStatus.ACTIVE]
    if inactive:
        return RuleDecision.deny(
            DenyReason.INVALID_STATUS,
            f"Only Active E-Way Bills can be consolidated. Found inactive: {', '.join(inactive)}",
        )
    expired = [s.number for s in snapshots if s.valid_until is not None and now > s.valid_until]
    if expired:
        return RuleDecision.deny(
            DenyReason.VALIDITY_EXPIRED,
            f"E-Way Bill validity has expired: {', '.join(expired)}",
        )
    return RuleDecision.allow()

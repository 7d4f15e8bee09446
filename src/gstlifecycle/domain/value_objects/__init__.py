"""Domain value objects."""

from gstlifecycle.domain.value_objects.audit_outcome import AuditOutcome
from gstlifecycle.domain.value_objects.deny_reason import DenyReason
from gstlifecycle.domain.value_objects.document_kind import DocumentKind
from gstlifecycle.domain.value_objects.document_status import (
    TERMINAL_STATUSES,
    DocumentStatus,
)
from gstlifecycle.domain.value_objects.payloads import (
    CancelPayload,
    EmptyPayload,
    GeneratePayload,
    RejectPayload,
    TransporterChangePayload,
    ValidityExtensionPayload,
    VehicleUpdatePayload,
)
from gstlifecycle.domain.value_objects.rule_decision import RuleDecision
from gstlifecycle.domain.value_objects.tax import InvoiceTotals, ItemTax, LineItem
from gstlifecycle.domain.value_objects.transition_kind import TransitionKind

__all__ = [
    "AuditOutcome",
    "CancelPayload",
    "DenyReason",
    "DocumentKind",
    "DocumentStatus",
    "EmptyPayload",
    "GeneratePayload",
    "InvoiceTotals",
    "ItemTax",
    "LineItem",
    "RejectPayload",
    "RuleDecision",
    "TERMINAL_STATUSES",
    "TransitionKind",
    "TransporterChangePayload",
    "ValidityExtensionPayload",
    "VehicleUpdatePayload",
]

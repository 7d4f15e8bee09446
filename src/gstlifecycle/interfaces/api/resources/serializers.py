"""JSON shapes for API responses."""

from datetime import datetime
from typing import Any

from gstlifecycle.application.dto.document_dto import DocumentOutput
from gstlifecycle.application.dto.transition_dto import ConsolidationResult, TransitionResult
from gstlifecycle.domain.entities import AuditRecord, DocumentSnapshot


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def audit_to_dict(a: AuditRecord) -> dict[str, Any]:
    return {
        "id": str(a.id),
        "document_number": a.document_number,
        "transition": a.transition.value,
        "outcome": a.outcome.value,
        "rule": a.rule,
        "message": a.message,
        "correlation_id": a.correlation_id,
        "actor": a.actor,
        "created_at": a.created_at.isoformat(),
    }


def snapshot_to_dict(s: DocumentSnapshot) -> dict[str, Any]:
    return {
        "number": s.number,
        "kind": s.kind.value,
        "status": s.status.value,
        "created_at": s.created_at.isoformat(),
        "status_changed_at": s.status_changed_at.isoformat(),
        "updated_at": s.updated_at.isoformat(),
        "version": s.version,
        "valid_until": _iso(s.valid_until),
        "payload": s.payload,
        "vehicle_history": [e.to_dict() for e in s.vehicle_history],
    }


def document_to_dict(d: DocumentOutput) -> dict[str, Any]:
    return {
        "number": d.number,
        "kind": d.kind.value,
        "status": d.status.value,
        "created_at": d.created_at.isoformat(),
        "status_changed_at": d.status_changed_at.isoformat(),
        "updated_at": d.updated_at.isoformat(),
        "version": d.version,
        "valid_until": _iso(d.valid_until),
        "payload": d.payload,
        "vehicle_history": [e.to_dict() for e in d.vehicle_history],
        "audit_trail": [audit_to_dict(a) for a in d.audit_trail],
        "hours_remaining": d.hours_remaining,
    }


def result_to_dict(r: TransitionResult) -> dict[str, Any]:
    if r.applied:
        return {
            "applied": True,
            "document": snapshot_to_dict(r.snapshot),
            "audit_record": audit_to_dict(r.audit_record),
        }
    return {
        "applied": False,
        "reason": r.reason,
        "message": r.message,
        "audit_record": audit_to_dict(r.audit_record) if r.audit_record else None,
    }


def consolidation_to_dict(r: ConsolidationResult) -> dict[str, Any]:
    body: dict[str, Any] = {
        "applied": r.applied,
        "audit_records": [audit_to_dict(a) for a in r.audit_records],
    }
    if r.applied:
        body["consolidated_number"] = r.consolidated_number
        body["documents"] = [snapshot_to_dict(s) for s in r.documents]
    else:
        body["reason"] = r.reason
        body["message"] = r.message
    return body

"""Apply transition use case - the lifecycle engine."""

import dataclasses
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from gstlifecycle.application.dto.gateway_dto import GatewayResponse, GatewaySession
from gstlifecycle.application.dto.transition_dto import (
    IST,
    Payload,
    TransitionRequest,
    TransitionResult,
    parse_transition_payload,
)
from gstlifecycle.application.ports import ComplianceGateway, CredentialsProvider
from gstlifecycle.application.use_cases.transition.gateway_submission import (
    GatewaySubmitter,
    Submission,
    log_gateway_fault,
    new_audit_record,
)
from gstlifecycle.domain.entities import AuditRecord, DocumentSnapshot, VehicleHistoryEntry
from gstlifecycle.domain.exceptions import (
    ConflictFault,
    GatewayFault,
    NotFound,
    ValidationFault,
)
from gstlifecycle.domain.services import transition_rules as rules
from gstlifecycle.domain.value_objects import (
    AuditOutcome,
    DenyReason,
    DocumentKind,
    DocumentStatus,
    RuleDecision,
    TransitionKind,
    VehicleUpdatePayload,
)

logger = structlog.get_logger(__name__)

# store and caller clocks may drift this far before we complain
OBSERVED_AT_TOLERANCE_SECONDS = 60

_RESULTING_STATUS = {
    TransitionKind.ACCEPT: DocumentStatus.ACCEPTED,
    TransitionKind.REJECT: DocumentStatus.REJECTED,
    TransitionKind.CANCEL: DocumentStatus.CANCELLED,
    TransitionKind.EXPIRE: DocumentStatus.EXPIRED,
}

# transitions recorded locally without a gateway round trip
_LOCAL_TRANSITIONS = frozenset({TransitionKind.EXPIRE})


def utc_now() -> datetime:
    return datetime.now(UTC)


class ApplyTransitionUseCase:
    """Validate a transition against stored state, submit it, persist the result.

    Exactly one audit record is written per attempt, except when the document
    does not exist. The store's conditional replace is the only concurrency
    control: two requests that both pass the rules may both reach the
    gateway, but only one of them is persisted; the other gets
    ``ConflictFault`` and must reload and retry.
    """

    def __init__(
        self,
        unit_of_work_factory: type,
        gateway: ComplianceGateway,
        credentials_provider: CredentialsProvider,
        gateway_timeout_seconds: float = 30.0,
        acceptance_window_hours: float = rules.ACCEPTANCE_WINDOW_HOURS,
        cancellation_window_hours: float = rules.CANCELLATION_WINDOW_HOURS,
        validity_extension_hours: float = rules.VALIDITY_EXTENSION_HOURS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._gateway = gateway
        self._submitter = GatewaySubmitter(gateway, credentials_provider, gateway_timeout_seconds)
        self._acceptance_window = acceptance_window_hours
        self._cancellation_window = cancellation_window_hours
        self._extension_horizon = validity_extension_hours
        self._clock = clock

    async def execute(self, user_id: str | None, request: TransitionRequest) -> TransitionResult:
        """Run one transition attempt end to end.

        Returns a result with ``applied=False`` for payload, rule and gateway
        denials. Raises ``NotFound``, ``GatewayFault`` (including auth failure
        and timeout) and ``ConflictFault``.
        """
        number = request.document_number
        kind = request.kind
        log = logger.bind(document_number=number, transition=kind.value, actor=user_id)

        async with self._uow_factory() as uow:
            snapshot = await uow.documents.get_by_number(number)
        if snapshot is None:
            raise NotFound("Document", number)

        now = self._clock()
        self._check_observed_at(snapshot, request, log)

        try:
            payload = parse_transition_payload(kind, request.payload)
        except ValidationFault as exc:
            record = await self._record(
                number, kind, AuditOutcome.REJECTED_BY_RULE, now, user_id,
                rule="validation", message=str(exc),
            )
            log.info("Transition payload invalid", field=exc.field, error=str(exc))
            return TransitionResult(
                applied=False,
                snapshot=snapshot,
                audit_record=record,
                reason=DenyReason.INVALID_PAYLOAD.value,
                message=str(exc),
            )

        decision = self._evaluate(snapshot, kind, payload, now)
        if not decision.allowed:
            record = await self._record(
                number, kind, AuditOutcome.REJECTED_BY_RULE, now, user_id,
                rule=decision.reason.value, message=decision.message,
            )
            log.info("Transition denied", reason=decision.reason.value)
            return TransitionResult(
                applied=False,
                snapshot=snapshot,
                audit_record=record,
                reason=decision.reason.value,
                message=decision.message,
            )

        response: GatewayResponse | None = None
        if kind not in _LOCAL_TRANSITIONS:
            try:
                response = await self._submitter.submit(self._submission(snapshot, kind, payload))
            except GatewayFault as exc:
                log_gateway_fault(exc, number, kind)
                await self._record(
                    number, kind, AuditOutcome.FAILED, self._clock(), user_id,
                    rule=exc.reason, message=str(exc),
                )
                raise
            if not response.is_success:
                record = await self._record(
                    number, kind, AuditOutcome.REJECTED_BY_GATEWAY, self._clock(), user_id,
                    rule="gateway", message=response.description,
                    correlation_id=response.correlation_id,
                )
                log.info(
                    "Transition rejected by gateway",
                    status_code=response.status_code,
                    correlation_id=response.correlation_id,
                )
                return TransitionResult(
                    applied=False,
                    snapshot=snapshot,
                    audit_record=record,
                    reason=DenyReason.GATEWAY_REJECTED.value,
                    message=response.description,
                )

        applied_at = self._clock()
        updated = self._next_snapshot(snapshot, kind, payload, response, applied_at, user_id)
        correlation_id = response.correlation_id if response else None
        record = new_audit_record(
            number, kind, AuditOutcome.APPLIED, applied_at, user_id,
            correlation_id=correlation_id,
        )
        async with self._uow_factory() as uow:
            replaced = await uow.documents.conditional_replace(number, snapshot.version, updated)
            if replaced:
                await uow.audit.append(record)

        if not replaced:
            await self._record(
                number, kind, AuditOutcome.FAILED, applied_at, user_id,
                rule="conflict", message=f"Version {snapshot.version} is stale",
                correlation_id=correlation_id,
            )
            log.warning("Transition lost a concurrent write", expected_version=snapshot.version)
            raise ConflictFault(number)

        log.info(
            "Transition applied",
            status=updated.status.value,
            version=updated.version,
            correlation_id=correlation_id,
        )
        return TransitionResult(applied=True, snapshot=updated, audit_record=record)

    async def accept(
        self, user_id: str | None, document_number: str, observed_at: datetime | None = None
    ) -> TransitionResult:
        return await self.execute(
            user_id, TransitionRequest(document_number, TransitionKind.ACCEPT, {}, observed_at)
        )

    async def reject(
        self,
        user_id: str | None,
        document_number: str,
        payload: Mapping[str, Any],
        observed_at: datetime | None = None,
    ) -> TransitionResult:
        return await self.execute(
            user_id, TransitionRequest(document_number, TransitionKind.REJECT, payload, observed_at)
        )

    async def update_vehicle(
        self, user_id: str | None, document_number: str, payload: Mapping[str, Any]
    ) -> TransitionResult:
        return await self.execute(
            user_id, TransitionRequest(document_number, TransitionKind.UPDATE_VEHICLE, payload)
        )

    async def cancel(
        self, user_id: str | None, document_number: str, payload: Mapping[str, Any]
    ) -> TransitionResult:
        return await self.execute(
            user_id, TransitionRequest(document_number, TransitionKind.CANCEL, payload)
        )

    async def change_transporter(
        self, user_id: str | None, document_number: str, payload: Mapping[str, Any]
    ) -> TransitionResult:
        return await self.execute(
            user_id, TransitionRequest(document_number, TransitionKind.CHANGE_TRANSPORTER, payload)
        )

    async def extend_validity(
        self, user_id: str | None, document_number: str, payload: Mapping[str, Any]
    ) -> TransitionResult:
        return await self.execute(
            user_id, TransitionRequest(document_number, TransitionKind.EXTEND_VALIDITY, payload)
        )

    async def expire(self, user_id: str | None, document_number: str) -> TransitionResult:
        return await self.execute(
            user_id, TransitionRequest(document_number, TransitionKind.EXPIRE, {})
        )

    def _evaluate(
        self,
        snapshot: DocumentSnapshot,
        kind: TransitionKind,
        payload: Payload,
        now: datetime,
    ) -> RuleDecision:
        if kind == TransitionKind.ACCEPT:
            return rules.check_accept(snapshot, now, self._acceptance_window)
        if kind == TransitionKind.REJECT:
            return rules.check_reject(snapshot, payload, now, self._acceptance_window)
        if kind == TransitionKind.UPDATE_VEHICLE:
            return rules.check_update_vehicle(snapshot, payload, now)
        if kind == TransitionKind.CANCEL:
            return rules.check_cancel(snapshot, payload, now, self._cancellation_window)
        if kind == TransitionKind.CHANGE_TRANSPORTER:
            return rules.check_change_transporter(snapshot, payload, now)
        if kind == TransitionKind.EXTEND_VALIDITY:
            return rules.check_extend_validity(snapshot, payload, now, self._extension_horizon)
        if kind == TransitionKind.EXPIRE:
            return rules.check_expire(snapshot, now)
        return RuleDecision.deny(
            DenyReason.UNSUPPORTED_KIND,
            f"{kind.value} cannot be applied to an existing document",
        )

    def _submission(
        self, snapshot: DocumentSnapshot, kind: TransitionKind, payload: Payload
    ) -> Submission:
        number = snapshot.number
        gateway = self._gateway

        async def submit(session: GatewaySession) -> GatewayResponse:
            if kind == TransitionKind.ACCEPT:
                return await gateway.accept_document(number, session)
            if kind == TransitionKind.REJECT:
                return await gateway.reject_document(number, payload.reason.strip(), session)
            if kind == TransitionKind.UPDATE_VEHICLE:
                return await gateway.update_vehicle(number, _normalized_vehicle(payload), session)
            if kind == TransitionKind.CANCEL:
                code = payload.reason_code.strip()
                if snapshot.kind == DocumentKind.E_INVOICE:
                    return await gateway.cancel_irn(number, code, payload.remarks, session)
                return await gateway.cancel_eway_bill(number, code, payload.remarks.strip(), session)
            if kind == TransitionKind.CHANGE_TRANSPORTER:
                return await gateway.change_transporter(
                    number, payload.transporter_id.strip(), payload.transporter_name, session
                )
            if kind == TransitionKind.EXTEND_VALIDITY:
                return await gateway.extend_validity(number, payload, session)
            raise ValueError(f"No gateway submission for {kind.value}")

        return submit

    def _next_snapshot(
        self,
        snapshot: DocumentSnapshot,
        kind: TransitionKind,
        payload: Payload,
        response: GatewayResponse | None,
        now: datetime,
        user_id: str | None,
    ) -> DocumentSnapshot:
        status = _RESULTING_STATUS.get(kind, snapshot.status)
        data = dict(snapshot.payload)
        history = list(snapshot.vehicle_history)
        valid_until = snapshot.valid_until

        if kind == TransitionKind.REJECT:
            data["reject_reason"] = payload.reason.strip()
        elif kind == TransitionKind.CANCEL:
            data["cancel_reason_code"] = payload.reason_code.strip()
            data["cancel_remarks"] = payload.remarks
        elif kind == TransitionKind.UPDATE_VEHICLE:
            vehicle = _normalized_vehicle(payload)
            entry = VehicleHistoryEntry(
                transport_mode=vehicle.transport_mode,
                distance=vehicle.distance,
                updated_at=now,
                vehicle_number=vehicle.vehicle_number,
                transporter_id=vehicle.transporter_id,
                transporter_name=vehicle.transporter_name,
                vehicle_type=vehicle.vehicle_type,
                trans_doc_no=vehicle.trans_doc_no,
                trans_doc_date=vehicle.trans_doc_date,
                updated_by=user_id,
            )
            history.append(entry)
            data["vehicle_number"] = entry.vehicle_number
            data["transport_mode"] = entry.transport_mode
            if response and response.valid_until:
                valid_until = response.valid_until
        elif kind == TransitionKind.CHANGE_TRANSPORTER:
            data["transporter_id"] = payload.transporter_id.strip()
            data["transporter_name"] = payload.transporter_name
        elif kind == TransitionKind.EXTEND_VALIDITY:
            data["current_location"] = payload.current_location.strip()
            data["extension_reason"] = payload.reason.strip()
            valid_until = (response.valid_until if response else None) or payload.new_valid_until

        return dataclasses.replace(
            snapshot,
            status=status,
            status_changed_at=now if status != snapshot.status else snapshot.status_changed_at,
            updated_at=now,
            version=snapshot.version + 1,
            payload=data,
            vehicle_history=history,
            valid_until=valid_until,
        )

    async def _record(
        self,
        number: str,
        kind: TransitionKind,
        outcome: AuditOutcome,
        now: datetime,
        user_id: str | None,
        **details: str | None,
    ) -> AuditRecord:
        record = new_audit_record(number, kind, outcome, now, user_id, **details)
        async with self._uow_factory() as uow:
            await uow.audit.append(record)
        return record

    def _check_observed_at(
        self, snapshot: DocumentSnapshot, request: TransitionRequest, log: Any
    ) -> None:
        if request.observed_at is None:
            return
        observed_at = request.observed_at
        if observed_at.tzinfo is None:
            observed_at = observed_at.replace(tzinfo=IST)
        drift = abs((observed_at - snapshot.status_changed_at).total_seconds())
        if drift > OBSERVED_AT_TOLERANCE_SECONDS:
            log.warning(
                "Caller timestamp disagrees with store",
                observed_at=observed_at.isoformat(),
                stored_at=snapshot.status_changed_at.isoformat(),
                drift_seconds=round(drift),
            )


def _normalized_vehicle(payload: VehicleUpdatePayload) -> VehicleUpdatePayload:
    if not payload.vehicle_number or not payload.vehicle_number.strip():
        return dataclasses.replace(payload, vehicle_number=None)
    return dataclasses.replace(
        payload, vehicle_number=rules.normalize_vehicle_number(payload.vehicle_number)
    )

"""Generate document use case."""

import dataclasses
from collections.abc import Callable
from datetime import datetime, timedelta

import structlog

from gstlifecycle.application.dto.gateway_dto import GatewayResponse, GatewaySession
from gstlifecycle.application.dto.transition_dto import (
    GenerateRequest,
    TransitionResult,
    parse_generate_payload,
)
from gstlifecycle.application.ports import ComplianceGateway, CredentialsProvider
from gstlifecycle.application.use_cases.transition.apply_transition import utc_now
from gstlifecycle.application.use_cases.transition.gateway_submission import (
    GatewaySubmitter,
    log_gateway_fault,
    new_audit_record,
)
from gstlifecycle.domain.entities import AuditRecord, DocumentSnapshot
from gstlifecycle.domain.exceptions import ConflictFault, GatewayFault, ValidationFault
from gstlifecycle.domain.services import tax_calculator
from gstlifecycle.domain.services import transition_rules as rules
from gstlifecycle.domain.value_objects import (
    AuditOutcome,
    DenyReason,
    DocumentKind,
    DocumentStatus,
    GeneratePayload,
    InvoiceTotals,
    TransitionKind,
)

logger = structlog.get_logger(__name__)


class GenerateDocumentUseCase:
    """Generate an E-Way Bill or IRN and store it as a new document.

    The document number is assigned by the gateway, so audit records for
    attempts that never reach a successful generation are keyed by the
    supplier's invoice number instead.
    """

    def __init__(
        self,
        unit_of_work_factory: type,
        gateway: ComplianceGateway,
        credentials_provider: CredentialsProvider,
        gateway_timeout_seconds: float = 30.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._gateway = gateway
        self._submitter = GatewaySubmitter(gateway, credentials_provider, gateway_timeout_seconds)
        self._clock = clock

    async def execute(self, user_id: str | None, request: GenerateRequest) -> TransitionResult:
        """Generate a document.

        Malformed payloads come back as an ``invalid-payload`` denial without
        an audit record. Raises ``GatewayFault`` and ``ConflictFault``.
        """
        try:
            payload = parse_generate_payload(request.payload)
        except ValidationFault as exc:
            return TransitionResult.invalid_payload(str(exc))

        reference = (payload.document_number or "").strip()
        log = logger.bind(kind=request.kind.value, invoice_number=reference, actor=user_id)
        now = self._clock()

        decision = rules.check_generate(request.kind, payload)
        if not decision.allowed:
            record = await self._record(
                reference, AuditOutcome.REJECTED_BY_RULE, now, user_id,
                rule=decision.reason.value, message=decision.message,
            )
            log.info("Generation denied", reason=decision.reason.value)
            return TransitionResult(
                applied=False,
                audit_record=record,
                reason=decision.reason.value,
                message=decision.message,
            )

        totals = invoice_totals(payload)

        async def submit(session: GatewaySession) -> GatewayResponse:
            if request.kind == DocumentKind.E_INVOICE:
                return await self._gateway.generate_irn(payload, totals, session)
            return await self._gateway.generate_eway_bill(payload, totals, session)

        try:
            response = await self._submitter.submit(submit)
            if response.is_success and not response.document_number:
                raise GatewayFault("Gateway response carried no document number", reason="malformed")
        except GatewayFault as exc:
            log_gateway_fault(exc, reference, TransitionKind.GENERATE)
            await self._record(
                reference, AuditOutcome.FAILED, self._clock(), user_id,
                rule=exc.reason, message=str(exc),
            )
            raise

        if not response.is_success:
            record = await self._record(
                reference, AuditOutcome.REJECTED_BY_GATEWAY, self._clock(), user_id,
                rule="gateway", message=response.description,
                correlation_id=response.correlation_id,
            )
            log.info("Generation rejected by gateway", status_code=response.status_code)
            return TransitionResult(
                applied=False,
                audit_record=record,
                reason=DenyReason.GATEWAY_REJECTED.value,
                message=response.description,
            )

        generated_at = self._clock()
        snapshot = self._new_snapshot(request.kind, payload, totals, response, generated_at)
        record = new_audit_record(
            snapshot.number, TransitionKind.GENERATE, AuditOutcome.APPLIED, generated_at, user_id,
            correlation_id=response.correlation_id,
        )
        try:
            async with self._uow_factory() as uow:
                await uow.documents.create(snapshot)
                await uow.audit.append(record)
        except ConflictFault:
            await self._record(
                snapshot.number, AuditOutcome.FAILED, generated_at, user_id,
                rule="conflict", message="Document number already stored",
                correlation_id=response.correlation_id,
            )
            raise

        log.info(
            "Document generated",
            document_number=snapshot.number,
            status=snapshot.status.value,
            correlation_id=response.correlation_id,
        )
        return TransitionResult(applied=True, snapshot=snapshot, audit_record=record)

    def _new_snapshot(
        self,
        kind: DocumentKind,
        payload: GeneratePayload,
        totals: InvoiceTotals,
        response: GatewayResponse,
        now: datetime,
    ) -> DocumentSnapshot:
        data = dict(payload.raw)
        data["invoice_number"] = payload.document_number.strip()
        data["totals"] = dataclasses.asdict(totals)
        if kind == DocumentKind.E_INVOICE:
            data["irn_response"] = response.data
            return DocumentSnapshot(
                number=response.document_number,
                kind=kind,
                status=DocumentStatus.GENERATED,
                created_at=now,
                status_changed_at=response.acknowledged_at or now,
                updated_at=now,
                payload=data,
            )

        valid_until = response.valid_until or now + timedelta(
            days=rules.validity_days(payload.distance, payload.vehicle_type)
        )
        return DocumentSnapshot(
            number=response.document_number,
            kind=kind,
            status=DocumentStatus.ACTIVE,
            created_at=now,
            status_changed_at=response.acknowledged_at or now,
            updated_at=now,
            payload=data,
            valid_until=valid_until,
        )

    async def _record(
        self,
        number: str,
        outcome: AuditOutcome,
        now: datetime,
        user_id: str | None,
        **details: str | None,
    ) -> AuditRecord:
        record = new_audit_record(number, TransitionKind.GENERATE, outcome, now, user_id, **details)
        async with self._uow_factory() as uow:
            await uow.audit.append(record)
        return record


def invoice_totals(payload: GeneratePayload) -> InvoiceTotals:
    """Item totals with round-off and cess folded into the invoice value."""
    totals = tax_calculator.compute_totals(payload.items)
    final_value = tax_calculator.compute_final_invoice_value(
        totals.total_invoice_value, payload.round_off, payload.cess
    )
    return dataclasses.replace(totals, total_invoice_value=final_value)

"""Consolidated E-Way Bill use case."""

import dataclasses
from collections.abc import Callable
from datetime import datetime

import structlog

from gstlifecycle.application.dto.gateway_dto import GatewayResponse, GatewaySession
from gstlifecycle.application.dto.transition_dto import (
    ConsolidateRequest,
    ConsolidationResult,
    parse_document_numbers,
)
from gstlifecycle.application.ports import ComplianceGateway, CredentialsProvider
from gstlifecycle.application.use_cases.transition.apply_transition import utc_now
from gstlifecycle.application.use_cases.transition.gateway_submission import (
    GatewaySubmitter,
    log_gateway_fault,
    new_audit_record,
)
from gstlifecycle.domain.entities import AuditRecord
from gstlifecycle.domain.exceptions import ConflictFault, GatewayFault, NotFound, ValidationFault
from gstlifecycle.domain.services import transition_rules as rules
from gstlifecycle.domain.value_objects import AuditOutcome, DenyReason, TransitionKind

logger = structlog.get_logger(__name__)


class ConsolidateEwayBillsUseCase:
    """Generate one consolidated E-Way Bill for several active E-Way Bills.

    Members keep their status and windows; each records the consolidated
    number. Every attempt writes one audit record per member. All member
    updates share one unit of work, so a stale member fails the whole
    consolidation with ``ConflictFault``.
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

    async def execute(self, user_id: str | None, request: ConsolidateRequest) -> ConsolidationResult:
        try:
            numbers = parse_document_numbers(request.document_numbers)
        except ValidationFault as exc:
            return ConsolidationResult.invalid_payload(str(exc))
        log = logger.bind(document_numbers=numbers, actor=user_id)

        async with self._uow_factory() as uow:
            snapshots = [await uow.documents.get_by_number(n) for n in numbers]
        for number, snapshot in zip(numbers, snapshots):
            if snapshot is None:
                raise NotFound("Document", number)

        now = self._clock()
        decision = rules.check_consolidate(snapshots, now)
        if not decision.allowed:
            records = await self._record(
                numbers, AuditOutcome.REJECTED_BY_RULE, now, user_id,
                rule=decision.reason.value, message=decision.message,
            )
            log.info("Consolidation denied", reason=decision.reason.value)
            return ConsolidationResult(
                applied=False,
                documents=snapshots,
                audit_records=records,
                reason=decision.reason.value,
                message=decision.message,
            )

        async def submit(session: GatewaySession) -> GatewayResponse:
            return await self._gateway.generate_consolidated(numbers, session)

        try:
            response = await self._submitter.submit(submit)
            if response.is_success and not response.document_number:
                raise GatewayFault(
                    "Gateway response carried no consolidated number", reason="malformed"
                )
        except GatewayFault as exc:
            log_gateway_fault(exc, ",".join(numbers), TransitionKind.CONSOLIDATE)
            await self._record(
                numbers, AuditOutcome.FAILED, self._clock(), user_id,
                rule=exc.reason, message=str(exc),
            )
            raise

        if not response.is_success:
            records = await self._record(
                numbers, AuditOutcome.REJECTED_BY_GATEWAY, self._clock(), user_id,
                rule="gateway", message=response.description,
                correlation_id=response.correlation_id,
            )
            log.info("Consolidation rejected by gateway", status_code=response.status_code)
            return ConsolidationResult(
                applied=False,
                documents=snapshots,
                audit_records=records,
                reason=DenyReason.GATEWAY_REJECTED.value,
                message=response.description,
            )

        applied_at = self._clock()
        consolidated_number = response.document_number
        updated = [
            dataclasses.replace(
                s,
                payload={**s.payload, "consolidated_eway_bill_no": consolidated_number},
                updated_at=applied_at,
                version=s.version + 1,
            )
            for s in snapshots
        ]
        records = [
            new_audit_record(
                s.number, TransitionKind.CONSOLIDATE, AuditOutcome.APPLIED, applied_at, user_id,
                message=f"Consolidated into {consolidated_number}",
                correlation_id=response.correlation_id,
            )
            for s in updated
        ]
        try:
            async with self._uow_factory() as uow:
                for before, after in zip(snapshots, updated):
                    if not await uow.documents.conditional_replace(before.number, before.version, after):
                        raise ConflictFault(before.number)
                for record in records:
                    await uow.audit.append(record)
        except ConflictFault as exc:
            await self._record(
                numbers, AuditOutcome.FAILED, applied_at, user_id,
                rule="conflict", message=str(exc),
                correlation_id=response.correlation_id,
            )
            log.warning(
                "Consolidation lost a concurrent write",
                stale_document=exc.document_number,
                consolidated_number=consolidated_number,
            )
            raise

        log.info(
            "E-Way Bills consolidated",
            consolidated_number=consolidated_number,
            correlation_id=response.correlation_id,
        )
        return ConsolidationResult(
            applied=True,
            consolidated_number=consolidated_number,
            documents=updated,
            audit_records=records,
        )

    async def _record(
        self,
        numbers: list[str],
        outcome: AuditOutcome,
        now: datetime,
        user_id: str | None,
        **details: str | None,
    ) -> list[AuditRecord]:
        records = [
            new_audit_record(n, TransitionKind.CONSOLIDATE, outcome, now, user_id, **details)
            for n in numbers
        ]
        async with self._uow_factory() as uow:
            for record in records:
                await uow.audit.append(record)
        return records

"""Compliance gateway port - the tax authority facing service."""

from typing import Protocol

from gstlifecycle.application.dto.gateway_dto import (
    GatewayAuthResult,
    GatewayCredentials,
    GatewayResponse,
    GatewaySession,
)
from gstlifecycle.domain.value_objects import (
    GeneratePayload,
    InvoiceTotals,
    ValidityExtensionPayload,
    VehicleUpdatePayload,
)


class ComplianceGateway(Protocol):
    """Port for authenticated submissions to the compliance gateway.

    Submissions return the gateway's own status code; only the success
    sentinels count as success, anything else is an explicit rejection.
    Transport problems raise ``GatewayFault``.
    """

    async def authenticate(self, credentials: GatewayCredentials) -> GatewayAuthResult: ...

    async def accept_document(self, number: str, session: GatewaySession) -> GatewayResponse: ...

    async def reject_document(
        self, number: str, reason: str, session: GatewaySession
    ) -> GatewayResponse: ...

    async def update_vehicle(
        self, number: str, vehicle: VehicleUpdatePayload, session: GatewaySession
    ) -> GatewayResponse: ...

    async def cancel_eway_bill(
        self, number: str, reason_code: str, remarks: str, session: GatewaySession
    ) -> GatewayResponse: ...

    async def change_transporter(
        self,
        number: str,
        transporter_id: str,
        transporter_name: str | None,
        session: GatewaySession,
    ) -> GatewayResponse: ...

    async def extend_validity(
        self, number: str, extension: ValidityExtensionPayload, session: GatewaySession
    ) -> GatewayResponse: ...

    async def generate_eway_bill(
        self, document: GeneratePayload, totals: InvoiceTotals, session: GatewaySession
    ) -> GatewayResponse: ...

    async def generate_irn(
        self, document: GeneratePayload, totals: InvoiceTotals, session: GatewaySession
    ) -> GatewayResponse: ...

    async def generate_consolidated(
        self, numbers: list[str], session: GatewaySession
    ) -> GatewayResponse: ...

    async def cancel_irn(
        self, irn: str, reason_code: str, remarks: str | None, session: GatewaySession
    ) -> GatewayResponse: ...

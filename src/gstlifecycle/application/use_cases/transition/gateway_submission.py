"""Authenticate-then-submit round trip against the compliance gateway."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from uuid import uuid4

import structlog

from gstlifecycle.application.dto.gateway_dto import GatewayResponse, GatewaySession
from gstlifecycle.application.ports import ComplianceGateway, CredentialsProvider
from gstlifecycle.domain.entities import AuditRecord
from gstlifecycle.domain.exceptions import (
    GatewayAuthFailed,
    GatewayFault,
    GatewayTimeout,
)
from gstlifecycle.domain.value_objects import AuditOutcome, TransitionKind

logger = structlog.get_logger(__name__)

Submission = Callable[[GatewaySession], Awaitable[GatewayResponse]]


class GatewaySubmitter:
    """Runs one authenticate + submit pair, each bounded by a caller-side timeout.

    Never retries. A timeout means the gateway's disposition is unknown and is
    reported as ``GatewayTimeout``, not as a rejection.
    """

    def __init__(
        self,
        gateway: ComplianceGateway,
        credentials_provider: CredentialsProvider,
        timeout_seconds: float,
    ) -> None:
        self._gateway = gateway
        self._credentials_provider = credentials_provider
        self._timeout = timeout_seconds

    async def submit(self, submission: Submission) -> GatewayResponse:
        """Authenticate, then run ``submission`` with the session.

        Raises ``GatewayAuthFailed`` when credentials are refused,
        ``GatewayTimeout`` when either call exceeds the timeout and
        ``GatewayFault`` for transport or malformed-response failures.
        """
        credentials = await self._credentials_provider.get_credentials()
        try:
            async with asyncio.timeout(self._timeout):
                auth = await self._gateway.authenticate(credentials)
        except TimeoutError:
            raise GatewayTimeout(
                f"Gateway authentication did not answer within {self._timeout:g}s"
            ) from None
        if not auth.is_success:
            raise GatewayAuthFailed(auth.description or "Authentication failed")

        try:
            async with asyncio.timeout(self._timeout):
                return await submission(auth.session)
        except TimeoutError:
            raise GatewayTimeout(
                f"Gateway submission did not answer within {self._timeout:g}s"
            ) from None


def new_audit_record(
    document_number: str,
    transition: TransitionKind,
    outcome: AuditOutcome,
    now: datetime,
    actor: str | None,
    rule: str | None = None,
    message: str | None = None,
    correlation_id: str | None = None,
) -> AuditRecord:
    return AuditRecord(
        id=uuid4(),
        document_number=document_number,
        transition=transition,
        outcome=outcome,
        created_at=now,
        rule=rule,
        message=message,
        correlation_id=correlation_id,
        actor=actor,
    )


def log_gateway_fault(
    exc: GatewayFault, document_number: str, transition: TransitionKind
) -> None:
    logger.warning(
        "Gateway fault",
        document_number=document_number,
        transition=transition.value,
        reason=exc.reason,
        error=str(exc),
    )

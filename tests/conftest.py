"""Pytest fixtures for lifecycle service tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from gstlifecycle.application.dto.gateway_dto import (
    GatewayAuthResult,
    GatewayCredentials,
    GatewayResponse,
    GatewaySession,
)
from gstlifecycle.domain.entities import AuditRecord, DocumentSnapshot
from gstlifecycle.domain.exceptions import ConflictFault
from gstlifecycle.domain.value_objects import DocumentKind, DocumentStatus

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)

CREDENTIALS = GatewayCredentials(
    email="ops@example.com",
    username="API_29AAAAA0000A1Z5",
    password="secret",
    client_id="client",
    client_secret="client-secret",
    gstin="29AAAAA0000A1Z5",
)


# --- Fake repositories ---


class FakeDocumentRepository:
    """In-memory document store with version compare-and-swap."""

    def __init__(self) -> None:
        self._by_number: dict[str, DocumentSnapshot] = {}

    def add(self, snapshot: DocumentSnapshot) -> None:
        self._by_number[snapshot.number] = snapshot

    async def get_by_number(self, number: str) -> DocumentSnapshot | None:
        snapshot = self._by_number.get(number)
        if snapshot is None:
            return None
        return replace(
            snapshot,
            payload=dict(snapshot.payload),
            vehicle_history=list(snapshot.vehicle_history),
        )

    async def create(self, snapshot: DocumentSnapshot) -> DocumentSnapshot:
        if snapshot.number in self._by_number:
            raise ConflictFault(snapshot.number)
        self._by_number[snapshot.number] = snapshot
        return snapshot

    async def conditional_replace(
        self, number: str, expected_version: int, snapshot: DocumentSnapshot
    ) -> bool:
        current = self._by_number.get(number)
        if current is None or current.version != expected_version:
            return False
        self._by_number[number] = snapshot
        return True


class FakeAuditRepository:
    """In-memory append-only audit log."""

    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    async def append(self, record: AuditRecord) -> AuditRecord:
        self.records.append(record)
        return record

    async def list_for_document(self, document_number: str) -> list[AuditRecord]:
        return [r for r in self.records if r.document_number == document_number]


class FakeUnitOfWork:
    """In-memory Unit of Work with fake repositories."""

    def __init__(self) -> None:
        self.documents = FakeDocumentRepository()
        self.audit = FakeAuditRepository()


def make_uow_factory(uow: FakeUnitOfWork):
    """Factory yielding the same FakeUnitOfWork on every call, so state survives between calls."""

    @asynccontextmanager
    async def factory() -> AsyncIterator[FakeUnitOfWork]:
        yield uow

    return factory


# --- Fake gateway ---


def gateway_response(
    status_code: str = "1",
    description: str = "Success",
    correlation_id: str = "corr-1",
    **kwargs,
) -> GatewayResponse:
    return GatewayResponse(
        status_code=status_code,
        description=description,
        correlation_id=correlation_id,
        **kwargs,
    )


class FakeComplianceGateway:
    """Gateway double. Every call yields to the event loop once, like real I/O."""

    def __init__(self, response: GatewayResponse | None = None, delay: float = 0.0) -> None:
        self.response = response or gateway_response()
        self.auth_result = GatewayAuthResult(
            status_code="1",
            description="Success",
            session=GatewaySession(token="token-1", credentials=CREDENTIALS),
        )
        self.delay = delay
        self.calls: list[tuple] = []

    async def _answer(self, name: str, *args) -> GatewayResponse:
        self.calls.append((name, *args))
        await asyncio.sleep(self.delay)
        return self.response

    async def authenticate(self, credentials: GatewayCredentials) -> GatewayAuthResult:
        self.calls.append(("authenticate", credentials))
        await asyncio.sleep(self.delay)
        return self.auth_result

    async def accept_document(self, number, session):
        return await self._answer("accept_document", number)

    async def reject_document(self, number, reason, session):
        return await self._answer("reject_document", number, reason)

    async def update_vehicle(self, number, vehicle, session):
        return await self._answer("update_vehicle", number, vehicle)

    async def cancel_eway_bill(self, number, reason_code, remarks, session):
        return await self._answer("cancel_eway_bill", number, reason_code, remarks)

    async def change_transporter(self, number, transporter_id, transporter_name, session):
        return await self._answer("change_transporter", number, transporter_id, transporter_name)

    async def extend_validity(self, number, extension, session):
        return await self._answer("extend_validity", number, extension)

    async def generate_eway_bill(self, document, totals, session):
        return await self._answer("generate_eway_bill", document, totals)

    async def generate_irn(self, document, totals, session):
        return await self._answer("generate_irn", document, totals)

    async def cancel_irn(self, irn, reason_code, remarks, session):
        return await self._answer("cancel_irn", irn, reason_code, remarks)

    async def generate_consolidated(self, numbers, session):
        return await self._answer("generate_consolidated", list(numbers))

    def submitted(self) -> list[str]:
        return [c[0] for c in self.calls if c[0] != "authenticate"]


# --- Builders ---


def make_snapshot(
    number: str = "EWB001",
    kind: DocumentKind = DocumentKind.EWAY_BILL,
    status: DocumentStatus = DocumentStatus.RECEIVED,
    since: timedelta = timedelta(hours=10),
    now: datetime = NOW,
    **kwargs,
) -> DocumentSnapshot:
    """Snapshot whose current status was entered ``since`` before ``now``."""
    entered = now - since
    return DocumentSnapshot(
        number=number,
        kind=kind,
        status=status,
        created_at=entered,
        status_changed_at=entered,
        updated_at=entered,
        **kwargs,
    )


# --- Fixtures ---


@pytest.fixture
def fake_uow() -> FakeUnitOfWork:
    """Fresh in-memory UnitOfWork for each test."""
    return FakeUnitOfWork()


@pytest.fixture
def uow_factory(fake_uow):
    """Factory returning async context manager over the test's FakeUnitOfWork."""
    return make_uow_factory(fake_uow)


@pytest.fixture
def gateway() -> FakeComplianceGateway:
    return FakeComplianceGateway()


@pytest.fixture
def credentials_provider():
    """AsyncMock for CredentialsProvider."""
    mock = AsyncMock()
    mock.get_credentials.return_value = CREDENTIALS
    return mock


@pytest.fixture
def clock():
    return lambda: NOW

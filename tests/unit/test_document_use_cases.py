"""Unit tests for generate, receive and get document use cases."""

from datetime import timedelta

import pytest

from gstlifecycle.application.dto.transition_dto import GenerateRequest, ReceiveRequest
from gstlifecycle.application.use_cases.document.get_document import GetDocumentUseCase
from gstlifecycle.application.use_cases.transition.generate_document import (
    GenerateDocumentUseCase,
)
from gstlifecycle.application.use_cases.transition.receive_document import (
    ReceiveDocumentUseCase,
)
from gstlifecycle.domain.exceptions import ConflictFault, GatewayFault, NotFound
from gstlifecycle.domain.value_objects import (
    AuditOutcome,
    DocumentKind,
    DocumentStatus,
    TransitionKind,
)

from tests.conftest import NOW, FakeComplianceGateway, gateway_response, make_snapshot


def _invoice(**overrides) -> dict:
    payload = {
        "document_number": "INV-1",
        "document_type": "INV",
        "document_date": "10/03/2026",
        "seller_gstin": "29AAAAA0000A1Z5",
        "buyer_gstin": "27BBBBB1111B1Z5",
        "items": [
            {"hsn_code": "8471", "value": "1000", "igst": "18", "quantity": "2"},
            {"hsn_code": "8473", "value": "500.50", "igst": "18"},
        ],
        "transport_mode": "1",
        "distance": 250,
        "round_off": "-0.59",
    }
    payload.update(overrides)
    return payload


def _generate_use_case(uow_factory, gateway, credentials_provider, clock) -> GenerateDocumentUseCase:
    return GenerateDocumentUseCase(
        unit_of_work_factory=uow_factory,
        gateway=gateway,
        credentials_provider=credentials_provider,
        clock=clock,
    )


# --- GenerateDocumentUseCase ---


@pytest.mark.asyncio
async def test_generate_eway_bill(fake_uow, uow_factory, credentials_provider, clock) -> None:
    """A generated E-Way Bill is stored ACTIVE under the gateway's number."""
    gateway = FakeComplianceGateway(response=gateway_response(document_number="331000000001"))
    use_case = _generate_use_case(uow_factory, gateway, credentials_provider, clock)

    result = await use_case.execute("user-1", GenerateRequest(DocumentKind.EWAY_BILL, _invoice()))

    assert result.applied is True
    snapshot = result.snapshot
    assert snapshot.number == "331000000001"
    assert snapshot.status == DocumentStatus.ACTIVE
    assert snapshot.version == 1
    # 250 km by regular vehicle: two days
    assert snapshot.valid_until == NOW + timedelta(days=2)
    assert snapshot.payload["invoice_number"] == "INV-1"
    assert snapshot.payload["totals"]["total_assessable"] == "1500.50"
    assert snapshot.payload["totals"]["total_igst"] == "270.09"
    assert snapshot.payload["totals"]["total_invoice_value"] == "1770.00"
    _, _, totals = gateway.calls[-1]
    assert totals.total_invoice_value == "1770.00"
    [record] = fake_uow.audit.records
    assert record.transition == TransitionKind.GENERATE
    assert record.outcome == AuditOutcome.APPLIED
    assert record.document_number == "331000000001"
    assert await fake_uow.documents.get_by_number("331000000001") is not None


@pytest.mark.asyncio
async def test_generate_irn_uses_acknowledgement_time(
    fake_uow, uow_factory, credentials_provider, clock
) -> None:
    """The IRN cancellation window starts at the gateway acknowledgement."""
    irn = "b" * 64
    ack = NOW - timedelta(minutes=3)
    gateway = FakeComplianceGateway(
        response=gateway_response(document_number=irn, acknowledged_at=ack, data={"AckNo": 1})
    )
    use_case = _generate_use_case(uow_factory, gateway, credentials_provider, clock)

    result = await use_case.execute(
        "user-1", GenerateRequest(DocumentKind.E_INVOICE, _invoice(transport_mode=None, distance=None))
    )

    assert result.snapshot.status == DocumentStatus.GENERATED
    assert result.snapshot.status_changed_at == ack
    assert result.snapshot.valid_until is None
    assert result.snapshot.payload["irn_response"] == {"AckNo": 1}
    assert gateway.submitted() == ["generate_irn"]


@pytest.mark.asyncio
async def test_generate_missing_fields(fake_uow, uow_factory, gateway, credentials_provider, clock) -> None:
    """Rule denials are audited against the invoice number."""
    use_case = _generate_use_case(uow_factory, gateway, credentials_provider, clock)

    result = await use_case.execute("user-1", GenerateRequest(DocumentKind.EWAY_BILL, _invoice(items=[])))

    assert result.applied is False
    assert result.reason == "missing-fields"
    assert gateway.calls == []
    [record] = fake_uow.audit.records
    assert record.document_number == "INV-1"
    assert record.outcome == AuditOutcome.REJECTED_BY_RULE


@pytest.mark.asyncio
async def test_generate_malformed_items(fake_uow, uow_factory, gateway, credentials_provider, clock) -> None:
    use_case = _generate_use_case(uow_factory, gateway, credentials_provider, clock)

    result = await use_case.execute("user-1", GenerateRequest(DocumentKind.EWAY_BILL, _invoice(items="many")))

    assert result.reason == "invalid-payload"
    assert fake_uow.audit.records == []


@pytest.mark.asyncio
@pytest.mark.parametrize("party", ["seller", "buyer"])
async def test_generate_irn_party_details_must_be_objects(
    party, fake_uow, uow_factory, gateway, credentials_provider, clock
) -> None:
    """Party details that are not objects never reach the gateway."""
    use_case = _generate_use_case(uow_factory, gateway, credentials_provider, clock)

    result = await use_case.execute(
        "user-1", GenerateRequest(DocumentKind.E_INVOICE, _invoice(**{party: "Acme Traders"}))
    )

    assert result.applied is False
    assert result.reason == "invalid-payload"
    assert party in result.message
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_generate_gateway_rejection(fake_uow, uow_factory, credentials_provider, clock) -> None:
    gateway = FakeComplianceGateway(
        response=gateway_response(status_code="0", description="Duplicate document number")
    )
    use_case = _generate_use_case(uow_factory, gateway, credentials_provider, clock)

    result = await use_case.execute("user-1", GenerateRequest(DocumentKind.EWAY_BILL, _invoice()))

    assert result.applied is False
    assert result.reason == "gateway-rejected"
    assert fake_uow.audit.records[0].outcome == AuditOutcome.REJECTED_BY_GATEWAY


@pytest.mark.asyncio
async def test_generate_success_without_number(fake_uow, uow_factory, gateway, credentials_provider, clock) -> None:
    """A success reply that names no document is a malformed response."""
    use_case = _generate_use_case(uow_factory, gateway, credentials_provider, clock)

    with pytest.raises(GatewayFault) as exc_info:
        await use_case.execute("user-1", GenerateRequest(DocumentKind.EWAY_BILL, _invoice()))

    assert exc_info.value.reason == "malformed"
    assert fake_uow.audit.records[0].outcome == AuditOutcome.FAILED


@pytest.mark.asyncio
async def test_generate_duplicate_number(fake_uow, uow_factory, credentials_provider, clock) -> None:
    fake_uow.documents.add(make_snapshot(number="331000000001", status=DocumentStatus.ACTIVE))
    gateway = FakeComplianceGateway(response=gateway_response(document_number="331000000001"))
    use_case = _generate_use_case(uow_factory, gateway, credentials_provider, clock)

    with pytest.raises(ConflictFault):
        await use_case.execute("user-1", GenerateRequest(DocumentKind.EWAY_BILL, _invoice()))

    assert [r.outcome for r in fake_uow.audit.records] == [AuditOutcome.FAILED]


# --- ReceiveDocumentUseCase ---


@pytest.mark.asyncio
async def test_receive_document(fake_uow, uow_factory, clock) -> None:
    """An inbound bill is stored RECEIVED with the server clock as anchor."""
    use_case = ReceiveDocumentUseCase(unit_of_work_factory=uow_factory, clock=clock)

    result = await use_case.execute(
        "user-1", ReceiveRequest(" EWB777 ", {"fromGstin": "29AAAAA0000A1Z5"}, NOW + timedelta(days=1))
    )

    assert result.applied is True
    assert result.snapshot.number == "EWB777"
    assert result.snapshot.status == DocumentStatus.RECEIVED
    assert result.snapshot.status_changed_at == NOW
    assert result.snapshot.payload == {"fromGstin": "29AAAAA0000A1Z5"}
    [record] = fake_uow.audit.records
    assert record.transition == TransitionKind.RECEIVE


@pytest.mark.asyncio
async def test_receive_blank_number(fake_uow, uow_factory, clock) -> None:
    use_case = ReceiveDocumentUseCase(unit_of_work_factory=uow_factory, clock=clock)

    result = await use_case.execute("user-1", ReceiveRequest("  "))

    assert result.reason == "invalid-payload"
    assert fake_uow.audit.records == []


@pytest.mark.asyncio
async def test_receive_twice(fake_uow, uow_factory, clock) -> None:
    use_case = ReceiveDocumentUseCase(unit_of_work_factory=uow_factory, clock=clock)
    await use_case.execute("user-1", ReceiveRequest("EWB777"))

    with pytest.raises(ConflictFault):
        await use_case.execute("user-1", ReceiveRequest("EWB777"))

    assert [r.outcome for r in fake_uow.audit.records] == [AuditOutcome.APPLIED, AuditOutcome.FAILED]


# --- GetDocumentUseCase ---


@pytest.mark.asyncio
async def test_get_received_document(fake_uow, uow_factory, clock) -> None:
    """Received bills report the hours left to accept or reject."""
    fake_uow.documents.add(make_snapshot(since=timedelta(hours=10)))
    use_case = GetDocumentUseCase(unit_of_work_factory=uow_factory, clock=clock)

    output = await use_case.execute("EWB001")

    assert output.number == "EWB001"
    assert output.status == DocumentStatus.RECEIVED
    assert output.hours_remaining == {"accept": 62.0, "reject": 62.0}
    assert output.audit_trail == []


@pytest.mark.asyncio
async def test_get_windows_by_status(fake_uow, uow_factory, clock) -> None:
    fake_uow.documents.add(
        make_snapshot(status=DocumentStatus.ACTIVE, since=timedelta(hours=30), valid_until=NOW + timedelta(days=1))
    )
    fake_uow.documents.add(make_snapshot(number="EWB002", status=DocumentStatus.EXPIRED))
    use_case = GetDocumentUseCase(unit_of_work_factory=uow_factory, clock=clock)

    active = await use_case.execute("EWB001")
    expired = await use_case.execute("EWB002")

    assert active.hours_remaining == {"cancel": 0.0}
    assert expired.hours_remaining == {}


@pytest.mark.asyncio
async def test_get_missing_document(uow_factory, clock) -> None:
    use_case = GetDocumentUseCase(unit_of_work_factory=uow_factory, clock=clock)

    with pytest.raises(NotFound):
        await use_case.execute("NOPE")

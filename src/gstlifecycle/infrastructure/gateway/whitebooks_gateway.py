"""WhiteBooks compliance gateway client (E-Way Bill and E-Invoice APIs)."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

import httpx
import structlog

from gstlifecycle.application.dto.gateway_dto import (
    GatewayAuthResult,
    GatewayCredentials,
    GatewayResponse,
    GatewaySession,
)
from gstlifecycle.application.dto.transition_dto import IST, parse_datetime
from gstlifecycle.domain.exceptions import GatewayFault, GatewayTimeout, ValidationFault
from gstlifecycle.domain.services import tax_calculator
from gstlifecycle.domain.services.transition_rules import normalize_vehicle_number
from gstlifecycle.domain.value_objects import (
    GeneratePayload,
    InvoiceTotals,
    ValidityExtensionPayload,
    VehicleUpdatePayload,
)

logger = structlog.get_logger(__name__)

AUTHENTICATE = "/einvoice/authenticate"
EWAY_ACCEPT = "/ewaybill/accept"
EWAY_REJECT = "/ewaybill/reject"
EWAY_UPDATE_PART_B = "/ewaybill/update-partb"
EWAY_CANCEL = "/ewaybill/cancel"
EWAY_CHANGE_TRANSPORTER = "/ewaybill/change-transporter"
EWAY_EXTEND_VALIDITY = "/ewaybill/extend-validity"
EWAY_GENERATE = "/ewaybill/generate"
EWAY_CONSOLIDATE = "/ewaybill/consolidated"
IRN_GENERATE = "/einvoice/type/GENERATE/version/V1_03"
IRN_CANCEL = "/einvoice/type/CANCELIRN/version/V1_03"

CORRELATION_HEADER = "X-Correlation-ID"
GATEWAY_DATE_FORMAT = "%d/%m/%Y %H:%M"

# request keys consumed into the structured generation body
_GENERATE_KEYS = {
    "document_number", "docNo", "document_type", "docType", "document_date", "docDate",
    "seller_gstin", "fromGstin", "buyer_gstin", "toGstin", "items", "itemList",
    "transport_mode", "transMode", "distance", "vehicle_number", "vehicleNo",
    "vehicle_type", "vehicleType", "round_off", "rndOffAmt", "cess", "cessValue",
    "seller", "buyer", "supply_type",
}


class WhiteBooksGateway:
    """ComplianceGateway adapter over the WhiteBooks REST API.

    Every request carries the account credentials as headers and the account
    email as a query parameter; submissions also carry the ``auth-token``
    obtained from :meth:`authenticate`. A JSON body with ``status_cd`` is
    treated as the gateway's answer whatever the HTTP status.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        generate_timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )
        self._generate_timeout = generate_timeout_seconds

    async def aclose(self) -> None:
        await self._client.aclose()

    async def authenticate(self, credentials: GatewayCredentials) -> GatewayAuthResult:
        body, _ = await self._request("GET", AUTHENTICATE, credentials)
        status_code, description, data = _status(body)
        token = data.get("AuthToken")
        if not token:
            return GatewayAuthResult(status_code=status_code, description=description)
        session = GatewaySession(
            token=token,
            credentials=credentials,
            expires_at=_gateway_datetime(data.get("TokenExpiry")),
        )
        return GatewayAuthResult(status_code=status_code, description=description, session=session)

    async def accept_document(self, number: str, session: GatewaySession) -> GatewayResponse:
        return await self._submit(EWAY_ACCEPT, {"ewayBillNo": number}, session, number)

    async def reject_document(
        self, number: str, reason: str, session: GatewaySession
    ) -> GatewayResponse:
        body = {"ewayBillNo": number, "rejectReason": reason}
        return await self._submit(EWAY_REJECT, body, session, number)

    async def update_vehicle(
        self, number: str, vehicle: VehicleUpdatePayload, session: GatewaySession
    ) -> GatewayResponse:
        body = _compact(
            {
                "ewayBillNo": number,
                "transMode": vehicle.transport_mode,
                "distance": vehicle.distance,
                "vehicleNo": vehicle.vehicle_number,
                "vehicleType": vehicle.vehicle_type,
                "transporterId": vehicle.transporter_id,
                "transporterName": vehicle.transporter_name,
                "transDocNo": vehicle.trans_doc_no,
                "transDocDate": vehicle.trans_doc_date,
            }
        )
        return await self._submit(EWAY_UPDATE_PART_B, body, session, number)

    async def cancel_eway_bill(
        self, number: str, reason_code: str, remarks: str, session: GatewaySession
    ) -> GatewayResponse:
        body = {"ewayBillNo": number, "cancelReasonCode": reason_code, "cancelRemarks": remarks}
        return await self._submit(EWAY_CANCEL, body, session, number)

    async def change_transporter(
        self,
        number: str,
        transporter_id: str,
        transporter_name: str | None,
        session: GatewaySession,
    ) -> GatewayResponse:
        body = {
            "ewayBillNo": number,
            "newTransporterId": transporter_id,
            "newTransporterName": transporter_name or "",
        }
        return await self._submit(EWAY_CHANGE_TRANSPORTER, body, session, number)

    async def extend_validity(
        self, number: str, extension: ValidityExtensionPayload, session: GatewaySession
    ) -> GatewayResponse:
        body = {
            "ewayBillNo": number,
            "extendReason": extension.reason.strip(),
            "currentLocation": extension.current_location.strip(),
            "newValidUntil": extension.new_valid_until.astimezone(IST).strftime(GATEWAY_DATE_FORMAT),
        }
        return await self._submit(EWAY_EXTEND_VALIDITY, body, session, number)

    async def generate_eway_bill(
        self, document: GeneratePayload, totals: InvoiceTotals, session: GatewaySession
    ) -> GatewayResponse:
        return await self._submit(
            EWAY_GENERATE,
            eway_bill_body(document, totals),
            session,
            document.document_number,
            timeout=self._generate_timeout,
        )

    async def generate_irn(
        self, document: GeneratePayload, totals: InvoiceTotals, session: GatewaySession
    ) -> GatewayResponse:
        return await self._submit(
            IRN_GENERATE,
            irn_body(document, totals),
            session,
            document.document_number,
            timeout=self._generate_timeout,
        )

    async def generate_consolidated(
        self, numbers: list[str], session: GatewaySession
    ) -> GatewayResponse:
        body = {"ewayBillNumbers": list(numbers)}
        return await self._submit(EWAY_CONSOLIDATE, body, session, ",".join(numbers))

    async def cancel_irn(
        self, irn: str, reason_code: str, remarks: str | None, session: GatewaySession
    ) -> GatewayResponse:
        body = {"irn": irn, "reason": reason_code, "remark": (remarks or "").strip()}
        return await self._submit(IRN_CANCEL, body, session, irn)

    async def _submit(
        self,
        path: str,
        body: dict[str, Any],
        session: GatewaySession,
        number: str | None,
        timeout: float | None = None,
    ) -> GatewayResponse:
        payload, correlation_id = await self._request(
            "POST", path, session.credentials, token=session.token, json=body, timeout=timeout
        )
        status_code, description, data = _status(payload)
        response = GatewayResponse(
            status_code=status_code,
            description=description,
            data=data,
            correlation_id=correlation_id,
            document_number=_document_number(data),
            valid_until=_gateway_datetime(
                data.get("validUpto") or data.get("ewayBillValidUpto") or data.get("ewayBillValidTill")
            ),
            acknowledged_at=_gateway_datetime(
                data.get("AckDt") or data.get("ewayBillDate") or data.get("CancelDate")
            ),
        )
        logger.debug(
            "Gateway response",
            path=path,
            document_number=number,
            status_code=status_code,
            correlation_id=correlation_id,
        )
        return response

    async def _request(
        self,
        method: str,
        path: str,
        credentials: GatewayCredentials,
        token: str | None = None,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> tuple[dict[str, Any], str]:
        correlation_id = uuid4().hex
        headers = {
            "email": credentials.email,
            "username": credentials.username,
            "password": credentials.password,
            "ip_address": credentials.ip_address,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "gstin": credentials.gstin,
            CORRELATION_HEADER: correlation_id,
        }
        if token:
            headers["auth-token"] = token
        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            resp = await self._client.request(
                method,
                path,
                params={"email": credentials.email},
                headers=headers,
                json=json,
                **kwargs,
            )
        except httpx.TimeoutException as e:
            raise GatewayTimeout(f"Gateway timed out on {path}") from e
        except httpx.HTTPError as e:
            raise GatewayFault(f"Gateway transport error on {path}: {e}", reason="transport") from e

        try:
            body = resp.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or "status_cd" not in body:
            raise GatewayFault(
                f"Malformed gateway response on {path} (HTTP {resp.status_code})",
                reason="malformed",
            )
        return body, resp.headers.get(CORRELATION_HEADER, correlation_id)


def _status(body: dict[str, Any]) -> tuple[str, str, dict[str, Any]]:
    data = body.get("data")
    return (
        str(body.get("status_cd", "")).strip(),
        str(body.get("status_desc") or ""),
        data if isinstance(data, dict) else {},
    )


def _document_number(data: dict[str, Any]) -> str | None:
    value = (
        data.get("consolidatedEWBNo")
        or data.get("cEwbNo")
        or data.get("ewayBillNo")
        or data.get("Irn")
        or data.get("irn")
    )
    return str(value) if value else None


def _gateway_datetime(value: Any) -> datetime | None:
    try:
        return parse_datetime(value, "gateway datetime")
    except ValidationFault:
        logger.warning("Unparseable gateway datetime", value=value)
        return None


def _compact(body: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in body.items() if v is not None}


def _passthrough(raw: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in raw.items() if k not in _GENERATE_KEYS}


def eway_bill_body(document: GeneratePayload, totals: InvoiceTotals) -> dict[str, Any]:
    """E-Way Bill generation body in the gateway's flat layout."""
    items = []
    for item in document.items:
        items.append(
            _compact(
                {
                    "productName": item.get("product_name"),
                    "productDesc": item.get("description"),
                    "hsnCode": str(item.get("hsn_code")).strip(),
                    "quantity": float(tax_calculator.parse_amount(item.get("quantity"), default=Decimal(1))),
                    "qtyUnit": str(item.get("unit") or "NOS").strip().upper(),
                    "taxableAmount": float(tax_calculator.parse_amount(item.get("value"))),
                    "cgstRate": float(tax_calculator.parse_amount(item.get("cgst"))),
                    "sgstRate": float(tax_calculator.parse_amount(item.get("sgst"))),
                    "igstRate": float(tax_calculator.parse_amount(item.get("igst"))),
                }
            )
        )
    body = _passthrough(document.raw)
    body.update(
        _compact(
            {
                "supplyType": body.get("supplyType", "O"),
                "docType": document.document_type,
                "docNo": document.document_number.strip(),
                "docDate": document.document_date,
                "fromGstin": document.seller_gstin.strip().upper(),
                "toGstin": document.buyer_gstin.strip().upper(),
                "itemList": items,
                "totalValue": float(totals.total_assessable),
                "cgstValue": float(totals.total_cgst),
                "sgstValue": float(totals.total_sgst),
                "igstValue": float(totals.total_igst),
                "cessValue": float(tax_calculator.parse_amount(document.cess)),
                "totInvValue": float(totals.total_invoice_value),
                "transMode": document.transport_mode,
                "distance": document.distance,
                "vehicleNo": normalize_vehicle_number(document.vehicle_number)
                if document.vehicle_number
                else None,
                "vehicleType": document.vehicle_type,
            }
        )
    )
    return body


def irn_body(document: GeneratePayload, totals: InvoiceTotals) -> dict[str, Any]:
    """E-Invoice (IRN) generation body, schema version 1.1."""
    items = []
    for position, item in enumerate(document.items, 1):
        item_tax = tax_calculator.compute_item_tax(
            item.get("value"), item.get("cgst"), item.get("sgst"), item.get("igst")
        )
        entry = {
            "SlNo": str(position),
            "IsServc": item.get("is_service") or "N",
            "PrdDesc": str(item.get("product_name") or "").strip(),
            "HsnCd": str(item.get("hsn_code")).strip(),
            "Qty": str(item.get("quantity") or "1").strip(),
            "Unit": str(item.get("unit") or "NOS").strip().upper(),
            "UnitPrice": tax_calculator.compute_unit_price(item.get("value"), item.get("quantity")),
            "TotAmt": item_tax.assessable_amount,
            "AssAmt": item_tax.assessable_amount,
            "GstRt": item_tax.effective_gst_rate,
            "SgstAmt": item_tax.sgst_amount,
            "IgstAmt": item_tax.igst_amount,
            "CgstAmt": item_tax.cgst_amount,
            "TotItemVal": item_tax.total_item_value,
        }
        batch = str(item.get("batch_number") or "").strip()
        if batch:
            entry["BchDtls"] = {"Nm": batch}
        items.append(entry)

    value_details = {
        "AssVal": totals.total_assessable,
        "CgstVal": totals.total_cgst,
        "SgstVal": totals.total_sgst,
        "IgstVal": totals.total_igst,
        "TotInvVal": totals.total_invoice_value,
    }
    if document.round_off not in (None, ""):
        value_details["RndOffAmt"] = tax_calculator.format_amount(document.round_off)
    if document.cess not in (None, ""):
        value_details["TotCess"] = tax_calculator.format_amount(document.cess)

    raw = document.raw
    body = _passthrough(raw)
    body.update(
        {
            "Version": "1.1",
            "TranDtls": {"TaxSch": "GST", "SupTyp": raw.get("supply_type") or "B2B"},
            "DocDtls": {
                "Typ": document.document_type,
                "No": document.document_number.strip(),
                "Dt": document.document_date,
            },
            "SellerDtls": {**(raw.get("seller") or {}), "Gstin": document.seller_gstin.strip().upper()},
            "BuyerDtls": {**(raw.get("buyer") or {}), "Gstin": document.buyer_gstin.strip().upper()},
            "ItemList": items,
            "ValDtls": value_details,
        }
    )
    return body

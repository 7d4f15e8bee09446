"""Document API resources."""

import falcon.asgi

from gstlifecycle.application.dto.transition_dto import (
    ConsolidateRequest,
    GenerateRequest,
    ReceiveRequest,
    parse_datetime,
)
from gstlifecycle.application.use_cases.document.get_document import GetDocumentUseCase
from gstlifecycle.application.use_cases.transition.consolidate_eway_bills import (
    ConsolidateEwayBillsUseCase,
)
from gstlifecycle.application.use_cases.transition.generate_document import (
    GenerateDocumentUseCase,
)
from gstlifecycle.application.use_cases.transition.receive_document import (
    ReceiveDocumentUseCase,
)
from gstlifecycle.domain.exceptions import GSTLifecycleError, ValidationFault
from gstlifecycle.domain.value_objects import DocumentKind
from gstlifecycle.interfaces.api.resources.faults import (
    current_user,
    write_fault,
    write_result_status,
)
from gstlifecycle.interfaces.api.resources.serializers import (
    consolidation_to_dict,
    document_to_dict,
    result_to_dict,
)


class DocumentsResource:
    """POST /v1/documents - generate an E-Way Bill or IRN."""

    def __init__(self, generate_document: GenerateDocumentUseCase) -> None:
        self._generate_document = generate_document

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """Generate document. Body: {"kind": "EWAY_BILL" | "E_INVOICE", "payload": {...}}."""
        user = current_user(req, resp)
        if user is None:
            return

        try:
            body = await req.get_media()
            kind = DocumentKind(body["kind"])
            payload = body.get("payload") or {}
        except (KeyError, ValueError, TypeError) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"Invalid request body: {e}"}
            return

        try:
            result = await self._generate_document.execute(
                user.user_id, GenerateRequest(kind=kind, payload=payload)
            )
        except GSTLifecycleError as e:
            write_fault(resp, e)
            return
        resp.media = result_to_dict(result)
        write_result_status(resp, result.applied, created=True)


class ReceivedDocumentsResource:
    """POST /v1/documents/received - register an inbound E-Way Bill."""

    def __init__(self, receive_document: ReceiveDocumentUseCase) -> None:
        self._receive_document = receive_document

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        user = current_user(req, resp)
        if user is None:
            return

        try:
            body = await req.get_media()
            number = str(body["document_number"])
            valid_until = parse_datetime(body.get("valid_until"), "valid_until")
            payload = body.get("payload") or {}
            if not isinstance(payload, dict):
                raise ValidationFault("payload must be an object", field="payload")
        except (KeyError, TypeError, AttributeError, ValidationFault) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"Invalid request body: {e}"}
            return

        try:
            result = await self._receive_document.execute(
                user.user_id,
                ReceiveRequest(document_number=number, payload=payload, valid_until=valid_until),
            )
        except GSTLifecycleError as e:
            write_fault(resp, e)
            return
        resp.media = result_to_dict(result)
        write_result_status(resp, result.applied, created=True)


class ConsolidatedDocumentsResource:
    """POST /v1/documents/consolidated - one consolidated E-Way Bill for several bills."""

    def __init__(self, consolidate: ConsolidateEwayBillsUseCase) -> None:
        self._consolidate = consolidate

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """Body: {"document_numbers": ["331000000001", "331000000002"]}."""
        user = current_user(req, resp)
        if user is None:
            return

        body = await req.get_media(default_when_empty={})
        if not isinstance(body, dict):
            resp.status = falcon.HTTP_400
            resp.media = {"error": "Request body must be a JSON object"}
            return
        numbers = body.get("document_numbers", body.get("ewayBillNumbers"))

        try:
            result = await self._consolidate.execute(
                user.user_id, ConsolidateRequest(document_numbers=numbers)
            )
        except GSTLifecycleError as e:
            write_fault(resp, e)
            return
        resp.media = consolidation_to_dict(result)
        write_result_status(resp, result.applied, created=True)


class DocumentResource:
    """GET /v1/documents/{number} - document with audit trail."""

    def __init__(self, get_document: GetDocumentUseCase) -> None:
        self._get_document = get_document

    async def on_get(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        number: str,
    ) -> None:
        """Get document by number."""
        user = current_user(req, resp)
        if user is None:
            return

        try:
            result = await self._get_document.execute(number)
        except GSTLifecycleError as e:
            write_fault(resp, e)
            return
        resp.media = document_to_dict(result)
        resp.status = falcon.HTTP_200

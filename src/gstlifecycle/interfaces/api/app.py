"""Falcon ASGI application."""

import falcon
import falcon.asgi
import structlog
from falcon.asgi import App

from gstlifecycle.interfaces.api.resources.documents import (
    ConsolidatedDocumentsResource,
    DocumentResource,
    DocumentsResource,
    ReceivedDocumentsResource,
)
from gstlifecycle.interfaces.api.resources.health import HealthResource
from gstlifecycle.interfaces.api.resources.tax import TaxItemsResource, TaxTotalsResource
from gstlifecycle.interfaces.api.resources.transitions import (
    ROUTED_TRANSITIONS,
    TransitionResource,
)

logger = structlog.get_logger(__name__)


async def _log_exception(req, resp, ex, params):
    logger.exception("Unhandled error", method=req.method, path=req.path)
    resp.status = falcon.HTTP_500
    resp.media = {"title": "500 Internal Server Error"}


def create_app(
    documents_resource: DocumentsResource,
    received_documents_resource: ReceivedDocumentsResource,
    consolidated_documents_resource: ConsolidatedDocumentsResource,
    document_resource: DocumentResource,
    transition_resources: dict[str, TransitionResource],
    health_resource: HealthResource,
    middleware: list | None = None,
) -> App:
    """Create Falcon ASGI app with routes.

    ``transition_resources`` maps the URL segment (``accept``,
    ``update-vehicle``...) to its resource.
    """
    app = falcon.asgi.App(middleware=middleware or [])
    app.add_error_handler(Exception, _log_exception)
    app.add_route("/v1/health", health_resource)
    app.add_route("/v1/health/ready", health_resource, suffix="ready")
    app.add_route("/v1/documents", documents_resource)
    app.add_route("/v1/documents/received", received_documents_resource)
    app.add_route("/v1/documents/consolidated", consolidated_documents_resource)
    app.add_route("/v1/documents/{number}", document_resource)
    for segment, resource in transition_resources.items():
        app.add_route(f"/v1/documents/{{number}}/{segment}", resource)
    app.add_route("/v1/tax/items", TaxItemsResource())
    app.add_route("/v1/tax/totals", TaxTotalsResource())
    return app


def transition_routes(apply_transition) -> dict[str, TransitionResource]:
    """One resource per routed transition kind, keyed by URL segment."""
    return {kind.value: TransitionResource(apply_transition, kind) for kind in ROUTED_TRANSITIONS}

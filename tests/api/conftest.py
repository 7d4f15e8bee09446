"""Fixtures for API tests."""

import pytest
from falcon.testing import TestClient

from gstlifecycle.application.use_cases.document.get_document import GetDocumentUseCase
from gstlifecycle.application.use_cases.transition.apply_transition import (
    ApplyTransitionUseCase,
)
from gstlifecycle.application.use_cases.transition.consolidate_eway_bills import (
    ConsolidateEwayBillsUseCase,
)
from gstlifecycle.application.use_cases.transition.generate_document import (
    GenerateDocumentUseCase,
)
from gstlifecycle.application.use_cases.transition.receive_document import (
    ReceiveDocumentUseCase,
)
from gstlifecycle.interfaces.api.app import create_app, transition_routes
from gstlifecycle.interfaces.api.middleware.auth import RequestUser
from gstlifecycle.interfaces.api.resources.documents import (
    ConsolidatedDocumentsResource,
    DocumentResource,
    DocumentsResource,
    ReceivedDocumentsResource,
)
from gstlifecycle.interfaces.api.resources.health import HealthResource


class AuthBypassMiddleware:
    """Middleware that sets context.user for testing."""

    async def process_request(self, req, resp):
        req.context.user = RequestUser(user_id="test-user-1")


class NoUserMiddleware:
    """Middleware that leaves the request unauthenticated."""

    async def process_request(self, req, resp):
        req.context.user = None


def _build_app(uow_factory, gateway, credentials_provider, clock, middleware):
    apply_transition = ApplyTransitionUseCase(
        unit_of_work_factory=uow_factory,
        gateway=gateway,
        credentials_provider=credentials_provider,
        gateway_timeout_seconds=0.05,
        clock=clock,
    )
    generate_document = GenerateDocumentUseCase(
        unit_of_work_factory=uow_factory,
        gateway=gateway,
        credentials_provider=credentials_provider,
        clock=clock,
    )
    consolidate = ConsolidateEwayBillsUseCase(
        unit_of_work_factory=uow_factory,
        gateway=gateway,
        credentials_provider=credentials_provider,
        clock=clock,
    )
    receive_document = ReceiveDocumentUseCase(unit_of_work_factory=uow_factory, clock=clock)
    get_document = GetDocumentUseCase(unit_of_work_factory=uow_factory, clock=clock)
    return create_app(
        documents_resource=DocumentsResource(generate_document),
        received_documents_resource=ReceivedDocumentsResource(receive_document),
        consolidated_documents_resource=ConsolidatedDocumentsResource(consolidate),
        document_resource=DocumentResource(get_document),
        transition_resources=transition_routes(apply_transition),
        health_resource=HealthResource(),
        middleware=middleware,
    )


@pytest.fixture
def app(uow_factory, gateway, credentials_provider, clock):
    """Falcon ASGI app wired to in-memory fakes."""
    return _build_app(uow_factory, gateway, credentials_provider, clock, [AuthBypassMiddleware()])


@pytest.fixture
def client(app):
    """Falcon ASGI test client."""
    return TestClient(app)


@pytest.fixture
def anonymous_client(uow_factory, gateway, credentials_provider, clock):
    """Test client whose requests carry no user."""
    app = _build_app(uow_factory, gateway, credentials_provider, clock, [NoUserMiddleware()])
    return TestClient(app)

"""Application entry point and composition root."""

import structlog

from gstlifecycle import __version__
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
from gstlifecycle.config import get_settings
from gstlifecycle.infrastructure.auth.keycloak_provider import KeycloakProvider
from gstlifecycle.infrastructure.gateway.credentials import SettingsCredentialsProvider
from gstlifecycle.infrastructure.gateway.whitebooks_gateway import WhiteBooksGateway
from gstlifecycle.infrastructure.persistence.postgres.connection import create_pool
from gstlifecycle.infrastructure.persistence.postgres.unit_of_work import (
    create_uow_factory,
)
from gstlifecycle.interfaces.api.app import create_app, transition_routes
from gstlifecycle.interfaces.api.middleware.auth import AuthMiddleware
from gstlifecycle.interfaces.api.middleware.cors import CORSMiddleware
from gstlifecycle.interfaces.api.middleware.lifespan import LifespanMiddleware
from gstlifecycle.interfaces.api.resources.documents import (
    ConsolidatedDocumentsResource,
    DocumentResource,
    DocumentsResource,
    ReceivedDocumentsResource,
)
from gstlifecycle.interfaces.api.resources.health import HealthResource
from gstlifecycle.logging_config import configure_logging

logger = structlog.get_logger(__name__)


def create_gstlifecycle_app():
    """Composition root - build Falcon app with all dependencies."""
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.environment != "development")

    pool = create_pool(
        settings.database_url,
        min_size=settings.database_pool_min_size,
        max_size=settings.database_pool_max_size,
    )
    uow_factory = create_uow_factory(pool)

    keycloak = (
        KeycloakProvider(
            server_url=settings.keycloak_url,
            realm=settings.keycloak_realm,
            client_id=settings.keycloak_client_id,
            client_secret=settings.keycloak_client_secret,
        )
        if settings.keycloak_client_secret
        else None
    )

    gateway = WhiteBooksGateway(
        base_url=settings.gateway_url,
        timeout_seconds=settings.gateway_timeout_seconds,
        generate_timeout_seconds=settings.gateway_generate_timeout_seconds,
    )
    credentials_provider = SettingsCredentialsProvider(settings)

    apply_transition = ApplyTransitionUseCase(
        unit_of_work_factory=uow_factory,
        gateway=gateway,
        credentials_provider=credentials_provider,
        gateway_timeout_seconds=settings.gateway_timeout_seconds,
        acceptance_window_hours=settings.acceptance_window_hours,
        cancellation_window_hours=settings.cancellation_window_hours,
        validity_extension_hours=settings.validity_extension_hours,
    )
    generate_document = GenerateDocumentUseCase(
        unit_of_work_factory=uow_factory,
        gateway=gateway,
        credentials_provider=credentials_provider,
        gateway_timeout_seconds=settings.gateway_generate_timeout_seconds,
    )
    consolidate = ConsolidateEwayBillsUseCase(
        unit_of_work_factory=uow_factory,
        gateway=gateway,
        credentials_provider=credentials_provider,
        gateway_timeout_seconds=settings.gateway_timeout_seconds,
    )
    receive_document = ReceiveDocumentUseCase(unit_of_work_factory=uow_factory)
    get_document = GetDocumentUseCase(
        unit_of_work_factory=uow_factory,
        acceptance_window_hours=settings.acceptance_window_hours,
        cancellation_window_hours=settings.cancellation_window_hours,
    )

    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app = create_app(
        documents_resource=DocumentsResource(generate_document),
        received_documents_resource=ReceivedDocumentsResource(receive_document),
        consolidated_documents_resource=ConsolidatedDocumentsResource(consolidate),
        document_resource=DocumentResource(get_document),
        transition_resources=transition_routes(apply_transition),
        health_resource=HealthResource(pool),
        middleware=[
            CORSMiddleware(cors_origins),
            LifespanMiddleware(pool, gateway),
            AuthMiddleware(keycloak, operator_role=settings.keycloak_operator_role),
        ],
    )
    logger.info("Application created", version=__version__, environment=settings.environment)
    return app


def main() -> None:
    """CLI entry point - run the API under uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_gstlifecycle_app(),
        host="0.0.0.0",
        port=8000,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

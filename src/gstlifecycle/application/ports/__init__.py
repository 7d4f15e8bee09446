"""Application ports - interfaces for external adapters."""

from gstlifecycle.application.ports.compliance_gateway import ComplianceGateway
from gstlifecycle.application.ports.credentials_provider import CredentialsProvider
from gstlifecycle.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "ComplianceGateway",
    "CredentialsProvider",
    "UnitOfWork",
    "UnitOfWorkFactory",
]

"""Repository ports."""

from gstlifecycle.application.ports.repositories.audit_repository import AuditRepository
from gstlifecycle.application.ports.repositories.document_repository import (
    DocumentRepository,
)

__all__ = [
    "AuditRepository",
    "DocumentRepository",
]

"""Unit of Work port - transactional boundary."""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from gstlifecycle.application.ports.repositories.audit_repository import AuditRepository
from gstlifecycle.application.ports.repositories.document_repository import (
    DocumentRepository,
)


class UnitOfWork(Protocol):
    """Document and audit repositories bound to one transaction.

    The transaction commits when the factory's context exits cleanly and
    rolls back when it exits with an exception.
    """

    @property
    def documents(self) -> DocumentRepository: ...

    @property
    def audit(self) -> AuditRepository: ...


class UnitOfWorkFactory(Protocol):
    """Opens a UnitOfWork: ``async with factory() as uow``."""

    def __call__(self) -> AbstractAsyncContextManager[UnitOfWork]: ...

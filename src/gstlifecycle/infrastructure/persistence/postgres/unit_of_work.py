"""PostgreSQL Unit of Work implementation."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

from gstlifecycle.application.ports.unit_of_work import UnitOfWorkFactory
from gstlifecycle.infrastructure.persistence.postgres.audit_repository import (
    PostgresAuditRepository,
)
from gstlifecycle.infrastructure.persistence.postgres.document_repository import (
    PostgresDocumentRepository,
)


class PostgresUnitOfWork:
    """Document and audit repositories sharing one pooled connection."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._documents = PostgresDocumentRepository(conn)
        self._audit = PostgresAuditRepository(conn)

    @property
    def documents(self) -> PostgresDocumentRepository:
        return self._documents

    @property
    def audit(self) -> PostgresAuditRepository:
        return self._audit


def create_uow_factory(pool: AsyncConnectionPool) -> UnitOfWorkFactory:
    """Each unit of work is one transaction: committed on clean exit, rolled back on error."""

    @asynccontextmanager
    async def factory() -> AsyncIterator[PostgresUnitOfWork]:
        async with pool.connection() as conn, conn.transaction():
            yield PostgresUnitOfWork(conn)

    return factory

"""PostgreSQL audit record repository implementation."""

from psycopg import AsyncConnection

from gstlifecycle.domain.entities import AuditRecord
from gstlifecycle.domain.value_objects import AuditOutcome, TransitionKind


class PostgresAuditRepository:
    """Append-only audit log."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def append(self, record: AuditRecord) -> AuditRecord:
        await self._conn.execute(
            "INSERT INTO audit_record (id, document_number, transition, outcome, created_at, "
            "rule, message, correlation_id, actor) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                record.id,
                record.document_number,
                record.transition.value,
                record.outcome.value,
                record.created_at,
                record.rule,
                record.message,
                record.correlation_id,
                record.actor,
            ),
        )
        return record

    async def list_for_document(self, document_number: str) -> list[AuditRecord]:
        """Audit trail for a document, oldest first."""
        cur = await self._conn.execute(
            "SELECT id, document_number, transition, outcome, created_at, rule, message, "
            "correlation_id, actor FROM audit_record WHERE document_number = %s "
            "ORDER BY created_at, id",
            (document_number,),
        )
        rows = await cur.fetchall()
        return [
            AuditRecord(
                id=r[0],
                document_number=r[1],
                transition=TransitionKind(r[2]),
                outcome=AuditOutcome(r[3]),
                created_at=r[4],
                rule=r[5],
                message=r[6],
                correlation_id=r[7],
                actor=r[8],
            )
            for r in rows
        ]

"""PostgreSQL document repository implementation."""

from typing import Any

from psycopg import AsyncConnection
from psycopg.errors import UniqueViolation
from psycopg.types.json import Jsonb

from gstlifecycle.domain.entities import DocumentSnapshot, VehicleHistoryEntry
from gstlifecycle.domain.exceptions import ConflictFault
from gstlifecycle.domain.value_objects import DocumentKind, DocumentStatus

_COLUMNS = (
    "number, kind, status, created_at, status_changed_at, updated_at, "
    "version, payload, vehicle_history, valid_until"
)


def _row_to_snapshot(r: tuple[Any, ...]) -> DocumentSnapshot:
    return DocumentSnapshot(
        number=r[0],
        kind=DocumentKind(r[1]),
        status=DocumentStatus(r[2]),
        created_at=r[3],
        status_changed_at=r[4],
        updated_at=r[5],
        version=r[6],
        payload=r[7] or {},
        vehicle_history=[VehicleHistoryEntry.from_dict(e) for e in r[8] or []],
        valid_until=r[9],
    )


class PostgresDocumentRepository:
    """Document snapshot repository keyed by document number."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_number(self, number: str) -> DocumentSnapshot | None:
        """Get document by number."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM compliance_document WHERE number = %s",
            (number,),
        )
        r = await cur.fetchone()
        if not r:
            return None
        return _row_to_snapshot(r)

    async def create(self, snapshot: DocumentSnapshot) -> DocumentSnapshot:
        """Insert a new document. Raises ConflictFault if the number is taken."""
        try:
            await self._conn.execute(
                f"INSERT INTO compliance_document ({_COLUMNS}) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
                (
                    snapshot.number,
                    snapshot.kind.value,
                    snapshot.status.value,
                    snapshot.created_at,
                    snapshot.status_changed_at,
                    snapshot.updated_at,
                    snapshot.version,
                    Jsonb(snapshot.payload),
                    Jsonb([e.to_dict() for e in snapshot.vehicle_history]),
                    snapshot.valid_until,
                ),
            )
        except UniqueViolation as e:
            raise ConflictFault(snapshot.number) from e
        return snapshot

    async def conditional_replace(
        self, number: str, expected_version: int, snapshot: DocumentSnapshot
    ) -> bool:
        """Replace the stored snapshot only if it is still at ``expected_version``."""
        cur = await self._conn.execute(
            "UPDATE compliance_document SET status=%s, status_changed_at=%s, updated_at=%s, "
            "version=%s, payload=%s, vehicle_history=%s, valid_until=%s "
            "WHERE number=%s AND version=%s",
            (
                snapshot.status.value,
                snapshot.status_changed_at,
                snapshot.updated_at,
                snapshot.version,
                Jsonb(snapshot.payload),
                Jsonb([e.to_dict() for e in snapshot.vehicle_history]),
                snapshot.valid_until,
                number,
                expected_version,
            ),
        )
        return cur.rowcount == 1

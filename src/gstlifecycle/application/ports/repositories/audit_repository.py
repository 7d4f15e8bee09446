"""Audit log port."""

from typing import Protocol

from gstlifecycle.domain.entities import AuditRecord


class AuditRepository(Protocol):
    """Append-only store of transition attempts."""

    async def append(self, record: AuditRecord) -> AuditRecord: ...

    async def list_for_document(self, document_number: str) -> list[AuditRecord]: ...

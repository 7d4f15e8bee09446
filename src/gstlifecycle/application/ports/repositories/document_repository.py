"""Document store port."""

from typing import Protocol

from gstlifecycle.domain.entities import DocumentSnapshot


class DocumentRepository(Protocol):
    """Port for document snapshot persistence, keyed by document number."""

    async def get_by_number(self, number: str) -> DocumentSnapshot | None: ...

    async def create(self, snapshot: DocumentSnapshot) -> DocumentSnapshot: ...

    async def conditional_replace(
        self, number: str, expected_version: int, snapshot: DocumentSnapshot
    ) -> bool: ...

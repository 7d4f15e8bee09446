"""Document lifecycle statuses."""

from enum import StrEnum


class DocumentStatus(StrEnum):
    """Status of a compliance document. Valid values depend on the document kind."""

    # E-Way Bill
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    RECEIVED = "RECEIVED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    # E-Invoice
    GENERATED = "GENERATED"
    # Shared
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset(
    {
        DocumentStatus.CANCELLED,
        DocumentStatus.REJECTED,
        DocumentStatus.EXPIRED,
        DocumentStatus.ACCEPTED,
    }
)

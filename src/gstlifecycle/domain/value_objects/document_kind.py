"""Kinds of compliance documents."""

from enum import StrEnum


class DocumentKind(StrEnum):
    """Regulatory document types handled by the lifecycle engine."""

    EWAY_BILL = "EWAY_BILL"
    E_INVOICE = "E_INVOICE"

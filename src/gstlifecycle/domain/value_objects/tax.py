"""Tax calculation value objects."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LineItem:
    """One invoice line as submitted. Fields may be partial during draft editing."""

    value: str | int | float | None = None
    cgst: str | int | float | None = None
    sgst: str | int | float | None = None
    igst: str | int | float | None = None
    quantity: str | int | float | None = None


@dataclass(frozen=True)
class ItemTax:
    """Computed amounts for one line item, two-decimal text."""

    assessable_amount: str
    cgst_amount: str
    sgst_amount: str
    igst_amount: str
    total_item_value: str
    effective_gst_rate: str


@dataclass(frozen=True)
class InvoiceTotals:
    """Computed invoice totals, two-decimal text."""

    total_assessable: str
    total_cgst: str
    total_sgst: str
    total_igst: str
    total_invoice_value: str

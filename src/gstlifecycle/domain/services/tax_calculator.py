"""GST amount calculations for E-Invoice and E-Way Bill line items.

All functions are pure. Inputs are parsed permissively: upstream forms submit
partially filled drafts, so a missing, empty or non-numeric field counts as
zero instead of failing. Arithmetic runs on ``Decimal`` and every monetary
output is rendered as two-decimal text, the canonical external form.
"""

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

from gstlifecycle.domain.value_objects import InvoiceTotals, ItemTax, LineItem

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_CENT = Decimal("0.01")

# largest decimal exponent accepted from input; products and quotients of
# two such values stay well inside the default context's exponent range
MAX_EXPONENT = 100


def parse_amount(value: Any, default: Decimal = ZERO) -> Decimal:
    """Parse a number from form input; anything unusable becomes ``default``.

    Magnitudes above ``10**MAX_EXPONENT`` are unusable. Magnitudes below
    ``10**-MAX_EXPONENT`` are read as zero.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        # str() keeps the shortest repr, so 0.1 stays 0.1
        parsed = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            return default
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return default
    if not parsed.is_finite():
        return default
    if parsed.adjusted() > MAX_EXPONENT:
        return default
    if parsed.adjusted() < -MAX_EXPONENT:
        return ZERO
    return parsed


def round_amount(value: Decimal) -> Decimal:
    """Round half-up to paise, whatever the number of integer digits."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        rounded = value.quantize(_CENT, rounding=ROUND_HALF_UP)
    return rounded if rounded != ZERO else ZERO.quantize(_CENT)


def format_amount(value: Any) -> str:
    """Render an amount with exactly two decimal digits."""
    amount = value if isinstance(value, Decimal) and value.is_finite() else parse_amount(value)
    return str(round_amount(amount))


def _tax(amount: Decimal, rate: Decimal) -> Decimal:
    return amount * rate / HUNDRED


def compute_item_tax(
    taxable_value: Any,
    cgst_rate: Any,
    sgst_rate: Any,
    igst_rate: Any,
) -> ItemTax:
    """Compute GST amounts for one line item.

    The effective rate is the IGST rate for an interstate supply, otherwise
    CGST + SGST. Mutual exclusivity of IGST and CGST/SGST is a business rule
    checked elsewhere.
    """
    assessable = parse_amount(taxable_value)
    cgst = parse_amount(cgst_rate)
    sgst = parse_amount(sgst_rate)
    igst = parse_amount(igst_rate)

    cgst_amount = _tax(assessable, cgst)
    sgst_amount = _tax(assessable, sgst)
    igst_amount = _tax(assessable, igst)
    total = assessable + cgst_amount + sgst_amount + igst_amount

    effective_rate = igst if igst > ZERO else cgst + sgst

    return ItemTax(
        assessable_amount=format_amount(assessable),
        cgst_amount=format_amount(cgst_amount),
        sgst_amount=format_amount(sgst_amount),
        igst_amount=format_amount(igst_amount),
        total_item_value=format_amount(total),
        effective_gst_rate=format_amount(effective_rate),
    )


def compute_unit_price(total_value: Any, quantity: Any) -> str:
    """Unit price = total / quantity. A zero quantity gives ``0.00``; never raises.

    A missing quantity counts as one unit.
    """
    total = parse_amount(total_value)
    qty = parse_amount(quantity, default=Decimal(1))
    if qty == ZERO:
        return format_amount(ZERO)
    return format_amount(total / qty)


def _item_fields(item: LineItem | Mapping[str, Any]) -> tuple[Any, Any, Any, Any]:
    if isinstance(item, LineItem):
        return item.value, item.cgst, item.sgst, item.igst
    return item.get("value"), item.get("cgst"), item.get("sgst"), item.get("igst")


def compute_totals(items: Iterable[LineItem | Mapping[str, Any]]) -> InvoiceTotals:
    """Sum line items in input order at full precision, rounding each field once."""
    total_assessable = ZERO
    total_cgst = ZERO
    total_sgst = ZERO
    total_igst = ZERO

    for item in items:
        value, cgst, sgst, igst = _item_fields(item)
        assessable = parse_amount(value)
        total_assessable += assessable
        total_cgst += _tax(assessable, parse_amount(cgst))
        total_sgst += _tax(assessable, parse_amount(sgst))
        total_igst += _tax(assessable, parse_amount(igst))

    total_invoice = total_assessable + total_cgst + total_sgst + total_igst

    return InvoiceTotals(
        total_assessable=format_amount(total_assessable),
        total_cgst=format_amount(total_cgst),
        total_sgst=format_amount(total_sgst),
        total_igst=format_amount(total_igst),
        total_invoice_value=format_amount(total_invoice),
    )


def apply_round_off(total_invoice_value: Any, round_off_amount: Any) -> str:
    """Add a (possibly negative) round-off to the invoice total."""
    return format_amount(parse_amount(total_invoice_value) + parse_amount(round_off_amount))


def apply_cess(total_invoice_value: Any, cess_amount: Any) -> str:
    """Add cess to the invoice total."""
    return format_amount(parse_amount(total_invoice_value) + parse_amount(cess_amount))


def compute_final_invoice_value(
    base_total: Any,
    round_off_amount: Any = None,
    cess_amount: Any = None,
) -> str:
    """Base total plus optional round-off and cess."""
    final = parse_amount(base_total) + parse_amount(round_off_amount) + parse_amount(cess_amount)
    return format_amount(final)

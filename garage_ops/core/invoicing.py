"""
Invoice arithmetic and numbering
"""

from dataclasses import dataclass
from typing import Iterable

from ..models import Invoice

INVOICE_NUMBER_WIDTH = 8


@dataclass(frozen=True)
class InvoiceTotals:
    tax_amount: float
    grand_total: float


def compute_totals(subtotal: float, tax_pct: float, discount_pct: float) -> InvoiceTotals:
    """grand total = subtotal + tax% of subtotal - discount% of subtotal"""
    subtotal = float(subtotal or 0)
    tax_amount = subtotal * (float(tax_pct or 0) / 100)
    discount_amount = subtotal * (float(discount_pct or 0) / 100)
    return InvoiceTotals(
        tax_amount=tax_amount,
        grand_total=subtotal + tax_amount - discount_amount,
    )


def apply_totals(invoice: Invoice) -> Invoice:
    """Copy of the invoice with grand_total recomputed from its inputs"""
    totals = compute_totals(invoice.total_amount, invoice.tax, invoice.discount)
    return invoice.model_copy(update={"grand_total": totals.grand_total})


def next_invoice_number(invoices: Iterable[Invoice]) -> str:
    """Highest numeric invoice number plus one, zero padded"""
    highest = 0
    for invoice in invoices:
        number = invoice.invoice_number.strip()
        if number.isdigit():
            highest = max(highest, int(number))
    return str(highest + 1).zfill(INVOICE_NUMBER_WIDTH)

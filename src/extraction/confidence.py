"""Overall confidence score for a parsed invoice."""

from datetime import date

from src.utils.config import FinancialConfig

from .invoice import Invoice

_ETTN_LENGTH = 36
_MIN_INVOICE_NUMBER_LENGTH = 10

BASIC_WEIGHT = 0.4
FINANCIAL_WEIGHT = 0.3
DERIVED_WEIGHT = 0.2
ITEMS_WEIGHT = 0.1


def score_invoice(
    invoice: Invoice,
    today: date | None = None,
    config: FinancialConfig | None = None,
) -> float:
    """Weighted completeness and consistency score in ``[0, 1]``.

    * basic (0.4): vendor name, tax id, positive total and a full-length
      ETTN, each a quarter; halved when no total was found.
    * financial (0.3): ``subtotal + tax`` within ``consistency_tolerance``
      of the total.
    * derived (0.2): plausible invoice number length and a date not in
      the future, half each.
    * items (0.1): at least one line item.

    Args:
        invoice: Parsed record.
        today: Reference day for the future-date check.
        config: Supplies the consistency tolerance.

    Returns:
        The score, rounded to three decimals.
    """
    today = today or date.today()
    config = config or FinancialConfig()

    basic = (
        sum(
            (
                bool(invoice.vendor_name),
                bool(invoice.vendor_tax_id),
                invoice.total_amount > 0,
                len(invoice.ettn) == _ETTN_LENGTH,
            )
        )
        / 4
    )
    if invoice.total_amount == 0:
        basic *= 0.5

    financial = 0.0
    if invoice.total_amount > 0:
        drift = abs(invoice.subtotal + invoice.tax_amount - invoice.total_amount)
        if drift <= config.consistency_tolerance * invoice.total_amount:
            financial = 1.0

    derived = 0.0
    if len(invoice.invoice_number) >= _MIN_INVOICE_NUMBER_LENGTH:
        derived += 0.5
    if invoice.invoice_date <= today:
        derived += 0.5

    items = 1.0 if invoice.items else 0.0

    score = (
        BASIC_WEIGHT * basic
        + FINANCIAL_WEIGHT * financial
        + DERIVED_WEIGHT * derived
        + ITEMS_WEIGHT * items
    )
    return round(score, 3)

"""Built-in vendor profiles, in priority order."""

import re

from src.extraction.invoice import Invoice
from src.extraction.normalizers import extract_ettn, find_amount
from src.extraction.patterns import KNOWN_ISSUERS, PATTERNS, PAYABLE_ANCHOR, fold_text
from src.layout.geometry import Fragment, Rect
from src.utils.logger import get_logger

logger = get_logger(__name__)

_TRENDYOL_TAX_ID = "3130557669"
_MIN_TRENDYOL_TEXT = 50


class TrendyolProfile:
    """Trendyol invoices, issued directly by DSM Grup or via the marketplace.

    The payable total is printed in the bottom-right corner.
    """

    name = "Trendyol"
    amount_region: Rect | None = Rect(0.6, 0.7, 0.4, 0.3)

    def matches(self, text: str) -> bool:
        if len(text) < _MIN_TRENDYOL_TEXT:
            return False
        return "dsm grup" in text or "trendyol" in text

    def apply(self, invoice: Invoice, raw_text: str, fragments: list[Fragment]) -> None:
        if _TRENDYOL_TAX_ID in raw_text:
            invoice.vendor_name = KNOWN_ISSUERS[_TRENDYOL_TAX_ID][0]
            invoice.metadata["vendor_type"] = "Trendyol_Direct"
        else:
            invoice.metadata["vendor_type"] = "Trendyol_Marketplace"

        ettn = extract_ettn(raw_text)
        if ettn:
            invoice.ettn = ettn

        if not invoice.invoice_number:
            order = PATTERNS["trendyol_order"].search(fold_text(raw_text))
            if order:
                invoice.invoice_number = order.group(0)


class A101Profile:
    """A101 (Yeni Mağazacılık) store receipts."""

    name = "A101"
    amount_region: Rect | None = None

    _invoice_number = re.compile(r"\bA\d{15}\b")

    def matches(self, text: str) -> bool:
        return "a101" in text or "yeni magazacilik" in text

    def apply(self, invoice: Invoice, raw_text: str, fragments: list[Fragment]) -> None:
        invoice.vendor_name = "A101 Yeni Mağazacılık A.Ş."

        if not invoice.invoice_number:
            match = self._invoice_number.search(raw_text)
            if match:
                invoice.invoice_number = match.group(0)

        if invoice.total_amount == 0:
            for line in raw_text.splitlines():
                if PAYABLE_ANCHOR in fold_text(line):
                    amount = find_amount(line)
                    if amount:
                        invoice.total_amount = amount
                        logger.debug("A101 payable amount %.2f", amount)
                        break


class FLOProfile:
    """FLO group stores (FLO, Kinetix, Polaris)."""

    name = "FLO"
    amount_region: Rect | None = None

    _brand = re.compile(r"\bflo\b|kinetix|polaris")

    def matches(self, text: str) -> bool:
        return self._brand.search(text) is not None

    def apply(self, invoice: Invoice, raw_text: str, fragments: list[Fragment]) -> None:
        invoice.vendor_name = "FLO Mağazacılık A.Ş."


class DefaultProfile:
    """Matches every document and changes nothing."""

    name = "Default"
    amount_region: Rect | None = None

    def matches(self, text: str) -> bool:
        return True

    def apply(self, invoice: Invoice, raw_text: str, fragments: list[Fragment]) -> None:
        return None

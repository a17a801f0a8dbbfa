"""Issuer name and tax identifier from the header-left block."""

from src.extraction.context import ParseContext
from src.extraction.invoice import Invoice, RegionType
from src.extraction.normalizers import contains_date, extract_tax_id, is_phone_number
from src.extraction.patterns import (
    BUYER_KEYWORDS,
    COMPANY_SUFFIXES,
    KNOWN_ISSUERS,
    MARKETPLACE_PHRASES,
    MERCHANT_BLACKLIST,
    contains_any,
    fold_text,
)
from src.layout.geometry import Rect
from src.layout.layout_analyzer import Zone
from src.utils.logger import get_logger

logger = get_logger(__name__)

_RAW_HEADER_LINES = 10
_RAW_TOP_LINES = 3
_MIN_NAME_LENGTH = 3

_NAME_CONFIDENCE = {"known": 0.95, "suffix": 0.8, "top": 0.6}
_TAX_ID_CONFIDENCE = {"known": 0.95, "labeled": 0.9, "checksum": 0.7, "candidate": 0.5}


class VendorStrategy:
    """Fill ``vendor_name`` and ``vendor_tax_id``.

    Known issuer tax ids short-circuit the search. Otherwise the vendor
    is the first header-left line that is not buyer information, a
    phone number or a date, and that carries a company suffix or sits
    in the top band of the page.
    """

    name = "vendor"

    def extract(self, invoice: Invoice, context: ParseContext) -> None:
        for tax_id, (vendor_name, vendor_type) in KNOWN_ISSUERS.items():
            if tax_id in context.full_text:
                invoice.vendor_name = vendor_name
                invoice.vendor_tax_id = tax_id
                invoice.metadata["vendor_type"] = vendor_type
                invoice.field_confidence["vendor_name"] = _NAME_CONFIDENCE["known"]
                invoice.field_confidence["vendor_tax_id"] = _TAX_ID_CONFIDENCE["known"]
                logger.debug("Known issuer %s matched by tax id", vendor_name)
                return

        self._extract_name(invoice, context)
        self._extract_tax_id(invoice, context)

        folded = fold_text(context.full_text)
        if contains_any(folded, MARKETPLACE_PHRASES):
            invoice.metadata["source"] = "Trendyol_Marketplace"

    def _candidate_lines(self, context: ParseContext) -> list[tuple[str, Rect | None, bool]]:
        """(text, rect, in top band) for header-left lines, top to bottom."""
        if context.has_layout:
            top_band = context.config.layout.vendor_top_band
            return [
                (line.text, line.rect, line.rect.y < top_band)
                for line in context.lines_in(Zone.HEADER_LEFT)
            ]
        return [
            (text, None, index < _RAW_TOP_LINES)
            for index, text in enumerate(context.clean_lines[:_RAW_HEADER_LINES])
        ]

    def _extract_name(self, invoice: Invoice, context: ParseContext) -> None:
        for text, rect, in_top_band in self._candidate_lines(context):
            folded = fold_text(text)
            if contains_any(folded, BUYER_KEYWORDS):
                continue
            if contains_any(folded, MERCHANT_BLACKLIST):
                continue
            if is_phone_number(text):
                continue

            if contains_any(folded, COMPANY_SUFFIXES):
                method = "suffix"
            elif (
                in_top_band
                and len(text.strip()) > _MIN_NAME_LENGTH
                and not contains_date(text)
            ):
                method = "top"
            else:
                continue

            invoice.vendor_name = text.strip()
            invoice.field_confidence["vendor_name"] = _NAME_CONFIDENCE[method]
            if rect is not None:
                context.mark_region(invoice, RegionType.VENDOR, [rect], invoice.vendor_name)
            logger.debug("Vendor name '%s' (%s)", invoice.vendor_name, method)
            return

    def _extract_tax_id(self, invoice: Invoice, context: ParseContext) -> None:
        match = extract_tax_id(context.full_text)
        if match is None or match.method != "labeled":
            if context.has_layout:
                texts = [f.text for f in context.fragments_in(Zone.HEADER_LEFT)]
            else:
                texts = context.clean_lines[:_RAW_HEADER_LINES]
            texts = [t for t in texts if not is_phone_number(t)]
            match = extract_tax_id("\n".join(texts))

        if match is not None:
            invoice.vendor_tax_id = match.value
            invoice.field_confidence["vendor_tax_id"] = _TAX_ID_CONFIDENCE[match.method]

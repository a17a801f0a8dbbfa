"""Invoice number, issue date and ETTN from the header-right block."""

from datetime import date

from src.extraction.context import ParseContext
from src.extraction.invoice import Invoice, RegionType
from src.extraction.normalizers import extract_ettn, extract_invoice_number, parse_date
from src.extraction.patterns import (
    DATE_BLACKLIST,
    DATE_TARGETS,
    INVOICE_NUMBER_LABELS,
    contains_any,
    fold_text,
)
from src.layout.geometry import Line
from src.layout.layout_analyzer import Zone
from src.utils.logger import get_logger

logger = get_logger(__name__)

_UNLABELED_DATE_LINES = 10
_TEXT_DATE_LINES = 20


class InvoiceDetailsStrategy:
    """Fill ``invoice_number``, ``invoice_date`` and ``ettn``.

    Each field is searched in the header-right zone first and then in
    the whole document. The date falls back to the parse day.
    """

    name = "details"

    def extract(self, invoice: Invoice, context: ParseContext) -> None:
        header_right = context.lines_in(Zone.HEADER_RIGHT) if context.has_layout else []
        self._extract_invoice_number(invoice, context, header_right)
        self._extract_date(invoice, context, header_right)

        ettn = extract_ettn(context.full_text)
        if ettn:
            invoice.ettn = ettn
            invoice.field_confidence["ettn"] = 0.9

    def _extract_invoice_number(
        self, invoice: Invoice, context: ParseContext, header_right: list[Line]
    ) -> None:
        labeled = [
            line
            for line in header_right
            if contains_any(fold_text(context.label_text(line)), INVOICE_NUMBER_LABELS)
        ]
        for line in labeled:
            number = extract_invoice_number(line.text)
            if number:
                self._set_number(invoice, number, 0.9)
                return

        header_fragments = context.fragments_in(Zone.HEADER_RIGHT)
        for fragment in header_fragments:
            number = extract_invoice_number(fragment.text)
            if number:
                self._set_number(invoice, number, 0.8)
                return

        number = extract_invoice_number(context.full_text)
        if number:
            self._set_number(invoice, number, 0.6)

    @staticmethod
    def _set_number(invoice: Invoice, number: str, confidence: float) -> None:
        invoice.invoice_number = number
        invoice.field_confidence["invoice_number"] = confidence
        logger.debug("Invoice number %s (confidence %.2f)", number, confidence)

    def _parse(self, text: str, context: ParseContext) -> date | None:
        return parse_date(text, today=context.today, config=context.config.dates)

    def _extract_date(
        self, invoice: Invoice, context: ParseContext, header_right: list[Line]
    ) -> None:
        labels = {line: fold_text(context.label_text(line)) for line in header_right}
        allowed = [
            line for line in header_right if not contains_any(labels[line], DATE_BLACKLIST)
        ]
        labeled = [line for line in allowed if contains_any(labels[line], DATE_TARGETS)]
        unlabeled = [line for line in allowed if line not in labeled][:_UNLABELED_DATE_LINES]

        for lines, confidence in ((labeled, 0.9), (unlabeled, 0.7)):
            for line in lines:
                parsed = self._parse(line.text, context)
                if parsed:
                    invoice.invoice_date = parsed
                    invoice.field_confidence["invoice_date"] = confidence
                    context.mark_region(invoice, RegionType.DATE, [line.rect], parsed.isoformat())
                    return

        text_lines = [
            t
            for t in context.clean_lines[:_TEXT_DATE_LINES]
            if not contains_any(fold_text(t), DATE_BLACKLIST)
        ]
        text_labeled = [t for t in text_lines if contains_any(fold_text(t), DATE_TARGETS)]
        for candidates, confidence in ((text_labeled, 0.8), (text_lines, 0.6)):
            for text in candidates:
                parsed = self._parse(text, context)
                if parsed:
                    invoice.invoice_date = parsed
                    invoice.field_confidence["invoice_date"] = confidence
                    return

        invoice.invoice_date = context.today
        logger.debug("No invoice date found; using %s", context.today)

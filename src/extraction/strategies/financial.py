"""Total, tax and subtotal from the footer, with ordered fallbacks.

Passes, first success wins:

1. priority region: the selected profile's rectangle, max amount
   inside it (confidence 0.95);
2. footer zone: bottom-up anchor scan, strict total phrases before the
   loose "TOPLAM" rule (0.9 / 0.75);
3. fallback: the same anchor scan over the whole text (0.7), else a
   labeled subtotal and tax whose total is derived by healing, else the
   largest footer amount, else the largest amount below the header
   with phone lines left out (0.5).

Self-healing always runs afterwards; a total it derives gains 0.1.
"""

from src.extraction.context import ParseContext
from src.extraction.invoice import Invoice, RegionType
from src.extraction.normalizers import (
    detect_tax_rate,
    find_all_amounts,
    find_amount,
    is_phone_number,
)
from src.extraction.patterns import (
    AMOUNT_BLACKLIST,
    DIRECT_TOTAL_ANCHOR,
    DIRECT_TOTAL_SKIP,
    LOOSE_TOTAL_ANCHOR,
    LOOSE_TOTAL_EXCLUDES,
    STRICT_TOTAL_ANCHORS,
    SUBTOTAL_LABELS,
    TAX_LABELS,
    contains_any,
    fold_text,
)
from src.extraction.self_healing import FinancialFigures, heal, split_total
from src.layout.layout_analyzer import Zone
from src.utils.config import FinancialConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

PRIORITY_CONFIDENCE = 0.95
STRICT_CONFIDENCE = 0.9
LOOSE_CONFIDENCE = 0.75
TEXT_ANCHOR_CONFIDENCE = 0.7
LAST_RESORT_CONFIDENCE = 0.5
HEAL_BONUS = 0.1

DIRECT_VENDOR_TYPE = "Trendyol_Direct"


def scan_total(texts: list[str], vendor_type: str | None = None) -> tuple[int, float, float] | None:
    """Bottom-up anchor scan for the payable total.

    Lines carrying a blacklisted phrase (net, excluding VAT, ...) are
    skipped. The first strict anchor found wins; the loose rule applies
    only when no strict anchor matched anywhere.

    Args:
        texts: Line texts, top to bottom.
        vendor_type: ``metadata["vendor_type"]`` set by the vendor pass.

    Returns:
        ``(line index, amount, confidence)`` or ``None``.
    """
    bottom_up = [(i, texts[i], fold_text(texts[i])) for i in reversed(range(len(texts)))]

    if vendor_type == DIRECT_VENDOR_TYPE:
        for i, text, folded in bottom_up:
            if DIRECT_TOTAL_SKIP in folded:
                continue
            if DIRECT_TOTAL_ANCHOR in folded:
                amount = find_amount(text)
                if amount:
                    return i, amount, STRICT_CONFIDENCE

    candidates = [c for c in bottom_up if not contains_any(c[2], AMOUNT_BLACKLIST)]

    for i, text, folded in candidates:
        if contains_any(folded, STRICT_TOTAL_ANCHORS):
            amount = find_amount(text)
            if amount:
                return i, amount, STRICT_CONFIDENCE

    for i, text, folded in candidates:
        if LOOSE_TOTAL_ANCHOR in folded and not contains_any(folded, LOOSE_TOTAL_EXCLUDES):
            amount = find_amount(text)
            if amount:
                return i, amount, LOOSE_CONFIDENCE
    return None


def scan_subtotal(texts: list[str], total: float) -> tuple[int, float] | None:
    """Bottom-most subtotal-labeled amount strictly below ``total``."""
    for i in reversed(range(len(texts))):
        text = texts[i]
        if contains_any(fold_text(text), SUBTOTAL_LABELS):
            amount = find_amount(text)
            if amount and amount < total:
                return i, amount
    return None


def scan_tax(
    texts: list[str],
    subtotal: float,
    total: float,
    rate: float,
    config: FinancialConfig,
) -> tuple[int, float] | None:
    """Bottom-most tax-labeled amount close to ``subtotal * rate``.

    Without a subtotal the expected base is ``total / (1 + rate)``.
    """
    base = subtotal if subtotal > 0 else total / (1 + rate)
    expected = base * rate
    if expected <= 0:
        return None
    for i in reversed(range(len(texts))):
        text = texts[i]
        if contains_any(fold_text(text), TAX_LABELS):
            amount = find_amount(text)
            if amount and abs(amount - expected) <= config.tax_match_tolerance * expected:
                return i, amount
    return None


class FinancialStrategy:
    """Fill ``total_amount``, ``tax_amount`` and ``subtotal``.

    Reads ``metadata["vendor_type"]`` written by the vendor pass and the
    profile's priority rectangle. Sets ``field_confidence["total_amount"]``.
    """

    name = "financial"

    def extract(self, invoice: Invoice, context: ParseContext) -> None:
        config = context.config.financial
        rate = detect_tax_rate(context.full_text, config.default_tax_rate)

        result = self._priority_pass(invoice, context, rate)
        if result is None and context.has_layout:
            result = self._zone_pass(invoice, context, rate)
        if result is None:
            result = self._fallback_pass(invoice, context, rate)

        figures, confidence = result or (FinancialFigures(), 0.0)
        healed = heal(figures, rate, config)
        if figures.total == 0 and healed.total > 0:
            confidence += HEAL_BONUS

        invoice.total_amount = healed.total
        invoice.tax_amount = healed.tax
        invoice.subtotal = healed.subtotal
        invoice.field_confidence["total_amount"] = round(confidence, 2)

    def _priority_pass(
        self, invoice: Invoice, context: ParseContext, rate: float
    ) -> tuple[FinancialFigures, float] | None:
        region = context.profile.amount_region if context.profile else None
        if region is None or not context.has_layout:
            return None

        overlap = context.config.financial.priority_overlap
        inside = [
            f
            for f in context.fragments
            if f.rect.intersection_area(region) > overlap * f.rect.area
        ]
        text = "\n".join(f.text for f in inside)
        amounts = [a for a in find_all_amounts(text) if a > 0]
        if not amounts:
            return None

        total = max(amounts)
        region_rate = detect_tax_rate(text, rate)
        context.mark_region(invoice, RegionType.TOTAL, [f.rect for f in inside], f"{total:.2f}")
        logger.debug("Priority region total %.2f", total)
        return split_total(total, region_rate), PRIORITY_CONFIDENCE

    def _zone_pass(
        self, invoice: Invoice, context: ParseContext, rate: float
    ) -> tuple[FinancialFigures, float] | None:
        footer = context.lines_in(Zone.FOOTER)
        texts = [line.text for line in footer]
        found = scan_total(texts, invoice.metadata.get("vendor_type"))
        if found is None:
            return None

        index, total, confidence = found
        context.mark_region(invoice, RegionType.TOTAL, [footer[index].rect], f"{total:.2f}")

        subtotal = 0.0
        sub_found = scan_subtotal(texts, total)
        if sub_found:
            sub_index, subtotal = sub_found
            context.mark_region(
                invoice, RegionType.SUBTOTAL, [footer[sub_index].rect], f"{subtotal:.2f}"
            )

        tax = 0.0
        tax_found = scan_tax(texts, subtotal, total, rate, context.config.financial)
        if tax_found:
            tax_index, tax = tax_found
            context.mark_region(invoice, RegionType.TAX, [footer[tax_index].rect], f"{tax:.2f}")

        return FinancialFigures(total, tax, subtotal), confidence

    def _fallback_pass(
        self, invoice: Invoice, context: ParseContext, rate: float
    ) -> tuple[FinancialFigures, float] | None:
        texts = context.clean_lines
        found = scan_total(texts, invoice.metadata.get("vendor_type"))
        if found is not None:
            _, total, _ = found
            confidence = TEXT_ANCHOR_CONFIDENCE
        else:
            parts = self._labeled_parts(texts, rate, context.config.financial)
            if parts is not None:
                logger.debug("No total anchor; healing from labeled subtotal and tax")
                return parts, LAST_RESORT_CONFIDENCE
            amounts = self._loose_amounts(context)
            if not amounts:
                return None
            total = max(amounts)
            confidence = LAST_RESORT_CONFIDENCE
            logger.debug("No total anchor; using largest amount %.2f", total)

        sub_found = scan_subtotal(texts, total)
        subtotal = sub_found[1] if sub_found else 0.0
        tax_found = scan_tax(texts, subtotal, total, rate, context.config.financial)
        tax = tax_found[1] if tax_found else 0.0
        return FinancialFigures(total, tax, subtotal), confidence

    @staticmethod
    def _loose_amounts(context: ParseContext) -> list[float]:
        """Unlabeled amounts of the footer, else of every row below the header.

        Phone lines never count: their digit groups read as amounts.
        """
        if context.has_layout:
            header = (Zone.HEADER_LEFT, Zone.HEADER_RIGHT)
            groups = (
                [line.text for line in context.lines_in(Zone.FOOTER)],
                [
                    line.text
                    for line in context.lines
                    if context.analyzer.zone_of(line.rect) not in header
                ],
            )
        else:
            groups = (context.clean_lines,)

        for texts in groups:
            kept = "\n".join(text for text in texts if not is_phone_number(text))
            amounts = [a for a in find_all_amounts(kept) if a > 0]
            if amounts:
                return amounts
        return []

    @staticmethod
    def _labeled_parts(
        texts: list[str], rate: float, config: FinancialConfig
    ) -> FinancialFigures | None:
        """Subtotal and tax read from their labels; the total is left to healing."""
        sub_found = scan_subtotal(texts, float("inf"))
        if sub_found is None:
            return None
        tax_found = scan_tax(texts, sub_found[1], 0.0, rate, config)
        if tax_found is None:
            return None
        return FinancialFigures(0.0, tax_found[1], sub_found[1])

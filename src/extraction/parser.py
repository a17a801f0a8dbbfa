"""Invoice parsing pipeline.

Runs one document through the states::

    EMPTY -> CLUSTERED -> PROFILED -> EXTRACTED -> OVERRIDDEN -> SCORED -> DONE

``REJECTED`` is entered only when there are neither fragments nor raw
text; that is the one error a parse raises. Everything else degrades
to default field values and a lower confidence.

A parse holds no state on the parser instance, so one
:class:`InvoiceParser` can serve concurrent callers.
"""

from datetime import date
from enum import StrEnum
from typing import Sequence

from src.layout.geometry import Fragment
from src.layout.layout_analyzer import LayoutAnalyzer
from src.profiles.registry import ProfileRegistry
from src.utils.config import AppConfig
from src.utils.exceptions import EmptyInputError
from src.utils.logger import get_logger

from .confidence import score_invoice
from .context import ParseContext
from .invoice import Invoice
from .normalizers import detect_tax_rate
from .patterns import fold_text
from .self_healing import FinancialFigures, heal
from .strategies.base import ExtractionStrategy
from .strategies.details import InvoiceDetailsStrategy
from .strategies.financial import FinancialStrategy
from .strategies.items import LineItemsStrategy
from .strategies.vendor import VendorStrategy

logger = get_logger(__name__)


class ParseState(StrEnum):
    """Pipeline stages of a single parse."""

    EMPTY = "empty"
    CLUSTERED = "clustered"
    PROFILED = "profiled"
    EXTRACTED = "extracted"
    OVERRIDDEN = "overridden"
    SCORED = "scored"
    DONE = "done"
    REJECTED = "rejected"


def default_strategies() -> list[ExtractionStrategy]:
    """Vendor, details, items, financial; the financial pass runs last."""
    return [
        VendorStrategy(),
        InvoiceDetailsStrategy(),
        LineItemsStrategy(),
        FinancialStrategy(),
    ]


class InvoiceParser:
    """Layout-driven invoice field extractor.

    Args:
        config: Thresholds and tolerances. Defaults to :class:`AppConfig`.
        registry: Vendor profiles. Defaults to the built-in set.
        strategies: Extraction passes in execution order.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        registry: ProfileRegistry | None = None,
        strategies: list[ExtractionStrategy] | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.analyzer = LayoutAnalyzer(self.config.layout)
        self.registry = registry or ProfileRegistry()
        self.strategies = strategies or default_strategies()

    def parse(
        self,
        fragments: Sequence[Fragment] | None = None,
        raw_text: str | None = None,
        include_debug_regions: bool = False,
        today: date | None = None,
    ) -> Invoice:
        """Extract an invoice record from positioned text.

        Args:
            fragments: Recognized text spans with normalized top-left
                rectangles.
            raw_text: Plain text used only when ``fragments`` is empty.
            include_debug_regions: Record the page regions each field
                was read from.
            today: Reference day for date fallback and plausibility.

        Returns:
            The populated invoice with its confidence score.

        Raises:
            EmptyInputError: If there are no fragments and no raw text.
        """
        state = ParseState.EMPTY
        fragments = list(fragments or [])
        if not fragments and not (raw_text and raw_text.strip()):
            self._advance(state, ParseState.REJECTED)
            raise EmptyInputError()

        today = today or date.today()

        lines = self.analyzer.cluster_rows(fragments)
        full_text = "\n".join(line.text for line in lines) if fragments else raw_text or ""
        state = self._advance(state, ParseState.CLUSTERED)
        logger.info("Parsing %d fragments in %d rows", len(fragments), len(lines))

        profile = self.registry.select(fold_text(full_text).lower())
        state = self._advance(state, ParseState.PROFILED)

        context = ParseContext(
            fragments=fragments,
            lines=lines,
            full_text=full_text,
            analyzer=self.analyzer,
            config=self.config,
            today=today,
            profile=profile,
            include_debug_regions=include_debug_regions,
        )
        invoice = Invoice(invoice_date=today)
        for strategy in self.strategies:
            strategy.extract(invoice, context)
        state = self._advance(state, ParseState.EXTRACTED)

        profile.apply(invoice, full_text, fragments)
        self._reheal(invoice, full_text)
        invoice.metadata["profile"] = profile.name
        state = self._advance(state, ParseState.OVERRIDDEN)

        invoice.confidence = score_invoice(invoice, today, self.config.financial)
        state = self._advance(state, ParseState.SCORED)

        logger.info(
            "Parsed invoice: vendor='%s' total=%.2f confidence=%.3f",
            invoice.vendor_name,
            invoice.total_amount,
            invoice.confidence,
        )
        self._advance(state, ParseState.DONE)
        return invoice

    def _reheal(self, invoice: Invoice, full_text: str) -> None:
        """Reconcile figures again after profile overrides."""
        financial = self.config.financial
        healed = heal(
            FinancialFigures(invoice.total_amount, invoice.tax_amount, invoice.subtotal),
            detect_tax_rate(full_text, financial.default_tax_rate),
            financial,
        )
        invoice.total_amount = healed.total
        invoice.tax_amount = healed.tax
        invoice.subtotal = healed.subtotal

    @staticmethod
    def _advance(current: ParseState, new: ParseState) -> ParseState:
        logger.debug("Parse state %s -> %s", current, new)
        return new

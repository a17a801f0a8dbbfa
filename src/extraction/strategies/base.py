"""Capability interface shared by the extraction strategies."""

from typing import Protocol

from src.extraction.context import ParseContext
from src.extraction.invoice import Invoice


class ExtractionStrategy(Protocol):
    """One pass over the document that fills part of the invoice.

    Strategies run in a fixed order (vendor, details, items, financial)
    and mutate ``invoice`` in place. They read only the context, with
    one exception: the financial pass reads ``invoice.metadata`` set by
    the vendor pass.
    """

    name: str

    def extract(self, invoice: Invoice, context: ParseContext) -> None: ...

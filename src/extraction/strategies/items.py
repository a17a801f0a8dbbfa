"""Line items from the item table in the body zone."""

import re
from typing import Sequence

from src.extraction.context import ParseContext
from src.extraction.invoice import Invoice, LineItem, RegionType
from src.extraction.normalizers import find_amount, normalize_amount
from src.extraction.patterns import (
    CURRENCY_TOKENS,
    PATTERNS,
    TABLE_FOOTERS,
    TABLE_HEADERS,
    contains_any,
    fold_text,
)
from src.layout.geometry import Line
from src.layout.layout_analyzer import Zone
from src.utils.logger import get_logger

logger = get_logger(__name__)

_DEFAULT_TAX_RATE = 18
_CURRENCY_RE = re.compile(
    r"(?<!\w)(?:" + "|".join(re.escape(t) for t in CURRENCY_TOKENS) + r")(?!\w)"
)


def table_bounds(texts: Sequence[str]) -> tuple[int, int] | None:
    """Indices of the table header and its terminator.

    Returns:
        ``(header, end)`` where rows are ``texts[header + 1 : end]``;
        ``end`` is ``len(texts)`` when no terminator follows the header.
        ``None`` without a header.
    """
    header = next(
        (i for i, text in enumerate(texts) if contains_any(fold_text(text), TABLE_HEADERS)),
        None,
    )
    if header is None:
        return None
    end = next(
        (
            i
            for i in range(header + 1, len(texts))
            if contains_any(fold_text(texts[i]), TABLE_FOOTERS)
        ),
        len(texts),
    )
    return header, end


def item_from_text(text: str) -> LineItem | None:
    """Item from one text row: last amount is the price, the rest the name."""
    matches = list(PATTERNS["amount"].finditer(text))
    if not matches:
        return None
    last = matches[-1]
    amount = normalize_amount(last.group(0))
    if amount is None or amount <= 0:
        return None

    name = text[: last.start()] + text[last.end() :]
    name = " ".join(_CURRENCY_RE.sub(" ", name).split())
    if not name:
        return None
    return _make_item(name, amount)


def _make_item(name: str, amount: float) -> LineItem:
    return LineItem(
        name=name,
        quantity=1.0,
        unit_price=amount,
        total=amount,
        tax_rate=_DEFAULT_TAX_RATE,
    )


class LineItemsStrategy:
    """Fill ``items`` from rows between the table header and terminator.

    The rightmost fragment is the price when it sits in the last
    detected column and parses as an amount; the remaining fragments
    form the name. Without a table header no items are produced.
    """

    name = "items"

    def extract(self, invoice: Invoice, context: ParseContext) -> None:
        if context.has_layout:
            invoice.items = self._from_layout(invoice, context)
        else:
            invoice.items = self._from_text(context.clean_lines)
        logger.debug("Extracted %d line items", len(invoice.items))

    def _from_layout(self, invoice: Invoice, context: ParseContext) -> list[LineItem]:
        body = context.lines_in(Zone.BODY)
        bounds = table_bounds([line.text for line in body])
        if bounds is None:
            return []
        header, end = bounds
        rows = body[header + 1 : end]

        analyzer = context.analyzer
        anchors = analyzer.detect_columns(body)
        last_column = len(anchors) - 1

        items: list[LineItem] = []
        for row in rows:
            item = self._item_from_row(row, anchors, last_column, context)
            if item is not None:
                items.append(item)

        context.mark_region(
            invoice,
            RegionType.TABLE,
            [line.rect for line in body[header:end]],
            f"{len(items)} items",
        )
        return items

    @staticmethod
    def _item_from_row(
        row: Line, anchors: list[float], last_column: int, context: ParseContext
    ) -> LineItem | None:
        if len(row.fragments) == 1:
            return item_from_text(row.text)

        price = row.fragments[-1]
        if anchors and context.analyzer.column_index(price, anchors) != last_column:
            return None
        amount = find_amount(price.text)
        if amount is None or amount <= 0:
            return None

        name = " ".join(f.text for f in row.fragments[:-1]).strip()
        if not name:
            return None
        return _make_item(name, amount)

    @staticmethod
    def _from_text(lines: list[str]) -> list[LineItem]:
        bounds = table_bounds(lines)
        if bounds is None:
            return []
        header, end = bounds
        items = [item_from_text(text) for text in lines[header + 1 : end]]
        return [item for item in items if item is not None]

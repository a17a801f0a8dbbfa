"""Invoice record produced by one parse."""

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any

from src.layout.geometry import Rect


class RegionType(StrEnum):
    """Page regions reported for debugging overlays."""

    VENDOR = "vendor"
    TABLE = "table"
    TOTAL = "total"
    SUBTOTAL = "subtotal"
    TAX = "tax"
    DATE = "date"


@dataclass(frozen=True)
class DebugRegion:
    """Where a field was read from."""

    region_type: RegionType
    rect: Rect
    label: str = ""


@dataclass
class LineItem:
    """One row of the item table.

    ``tax_rate`` is an integer percentage.
    """

    name: str
    quantity: float = 1.0
    unit_price: float = 0.0
    total: float = 0.0
    tax_rate: int = 18


@dataclass
class Invoice:
    """Structured fields extracted from one invoice page.

    Missing fields keep their defaults; ``invoice_date`` falls back to
    the parse day. ``field_confidence`` holds per-field confidences and
    ``metadata`` free-form annotations such as ``vendor_type``.
    """

    vendor_name: str = ""
    vendor_tax_id: str = ""
    invoice_number: str = ""
    invoice_date: date = field(default_factory=date.today)
    ettn: str = ""
    total_amount: float = 0.0
    tax_amount: float = 0.0
    subtotal: float = 0.0
    items: list[LineItem] = field(default_factory=list)
    field_confidence: dict[str, float] = field(default_factory=dict)
    metadata: dict[str, str] = field(default_factory=dict)
    confidence: float = 0.0
    debug_regions: list[DebugRegion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        data = asdict(self)
        data["invoice_date"] = self.invoice_date.isoformat()
        data["debug_regions"] = [
            {
                "region_type": region.region_type.value,
                "label": region.label,
                "rect": asdict(region.rect),
            }
            for region in self.debug_regions
        ]
        return data

"""Per-parse context shared by the extraction strategies."""

from datetime import date
from functools import cached_property
from typing import TYPE_CHECKING, Iterable

from src.layout.geometry import Fragment, Line, Rect
from src.layout.layout_analyzer import LayoutAnalyzer, Zone
from src.utils.config import AppConfig

from .invoice import DebugRegion, Invoice, RegionType

if TYPE_CHECKING:
    from src.profiles.base import VendorProfile


class ParseContext:
    """Read-only views over one document, built once per parse.

    Zone views are computed on first use and cached. Strategies read
    from the context and write only to the :class:`Invoice`.

    Args:
        fragments: Input fragments (possibly empty on the raw-text path).
        lines: Rows clustered from ``fragments``.
        full_text: Line texts joined by newlines, or the raw text.
        analyzer: Layout analyzer used for zones and columns.
        config: Application configuration.
        today: Reference day for date fallbacks and plausibility.
        profile: Vendor profile selected for this document.
        include_debug_regions: Whether strategies record debug regions.
    """

    def __init__(
        self,
        fragments: list[Fragment],
        lines: list[Line],
        full_text: str,
        analyzer: LayoutAnalyzer,
        config: AppConfig,
        today: date,
        profile: "VendorProfile | None" = None,
        include_debug_regions: bool = False,
    ) -> None:
        self.fragments = fragments
        self.lines = lines
        self.full_text = full_text
        self.analyzer = analyzer
        self.config = config
        self.today = today
        self.profile = profile
        self.include_debug_regions = include_debug_regions
        self._zone_lines: dict[Zone, list[Line]] = {}
        self._zone_fragments: dict[Zone, list[Fragment]] = {}

    @property
    def has_layout(self) -> bool:
        """False on the raw-text path, where no positions are known."""
        return bool(self.fragments)

    def lines_in(self, zone: Zone) -> list[Line]:
        """Rows clustered from the fragments of ``zone`` alone."""
        if zone not in self._zone_lines:
            self._zone_lines[zone] = self.analyzer.rows_in(zone, self.fragments)
        return self._zone_lines[zone]

    def fragments_in(self, zone: Zone) -> list[Fragment]:
        if zone not in self._zone_fragments:
            self._zone_fragments[zone] = self.analyzer.fragments_in(zone, self.fragments)
        return self._zone_fragments[zone]

    @cached_property
    def _page_rows(self) -> dict[Fragment, Line]:
        return {fragment: line for line in self.lines for fragment in line.fragments}

    def label_text(self, line: Line) -> str:
        """Text of a zone row led by its nearest left neighbour on the page row.

        A label such as ``"Sipariş Tarihi:"`` can start left of the column
        split while its value sits right of it, so the two land in
        different zone rows. Label and blacklist checks read this text.
        """
        page_row = self._page_rows.get(line.fragments[0])
        if page_row is None:
            return line.text
        left = [
            f for f in page_row.fragments if f.rect.x < line.rect.x and f not in line.fragments
        ]
        if not left:
            return line.text
        neighbour = max(left, key=lambda f: f.rect.x)
        return f"{neighbour.text} {line.text}"

    @cached_property
    def clean_lines(self) -> list[str]:
        """Trimmed, non-empty text lines of the full text."""
        return [line.strip() for line in self.full_text.splitlines() if line.strip()]

    def mark_region(
        self,
        invoice: Invoice,
        region_type: RegionType,
        rects: Iterable[Rect],
        label: str = "",
    ) -> None:
        """Record where a field came from, when debug regions are requested."""
        if not self.include_debug_regions:
            return
        rects = list(rects)
        if not rects:
            return
        invoice.debug_regions.append(DebugRegion(region_type, Rect.union(rects), label))

"""Layout analysis for invoice pages.

Groups positioned fragments into rows, assigns rows and fragments to
coarse page zones, and infers column anchors inside a table region.

The four-zone model assumes a single-page, top-to-bottom invoice: the
top band holds the issuer (left) and document details (right), the
middle band holds the item table and the bottom band holds the totals.
The split values are calibration parameters from :class:`LayoutConfig`.
"""

from enum import StrEnum
from typing import Iterable

from src.utils.config import LayoutConfig
from src.utils.logger import get_logger

from .geometry import Fragment, Line, Rect

logger = get_logger(__name__)


class Zone(StrEnum):
    """Coarse page regions inferred from position."""

    HEADER_LEFT = "header_left"
    HEADER_RIGHT = "header_right"
    BODY = "body"
    FOOTER = "footer"


class LayoutAnalyzer:
    """Row clustering, zone classification and column detection.

    Args:
        config: Geometry thresholds. Defaults to :class:`LayoutConfig`.
    """

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()

    def row_tolerance(self, fragments: list[Fragment]) -> float:
        """Vertical distance under which two fragments share a row.

        Scales with the mean recognized text height so that dense and
        sparse documents cluster alike.
        """
        if not fragments:
            return self.config.row_tolerance_floor
        avg_height = sum(f.rect.height for f in fragments) / len(fragments)
        return max(
            self.config.row_tolerance_floor,
            avg_height * self.config.row_tolerance_factor,
        )

    def cluster_rows(
        self, fragments: list[Fragment], tolerance: float | None = None
    ) -> list[Line]:
        """Group fragments into top-to-bottom lines.

        A fragment joins the open line while its vertical center stays
        within tolerance of both the line's last and first members.

        Args:
            fragments: Fragments in any order.
            tolerance: Row tolerance; computed from ``fragments`` when
                omitted.

        Returns:
            Lines ordered top to bottom, covering every fragment once.
        """
        if not fragments:
            return []

        if tolerance is None:
            tolerance = self.row_tolerance(fragments)
        ordered = sorted(fragments, key=lambda f: (f.rect.y, f.rect.x))

        lines: list[Line] = []
        current: list[Fragment] = []
        for fragment in ordered:
            if current and self._same_row(fragment, current, tolerance):
                current.append(fragment)
                continue
            if current:
                lines.append(Line(tuple(current)))
            current = [fragment]
        lines.append(Line(tuple(current)))

        logger.debug(
            "Clustered %d fragments into %d rows (tolerance=%.4f)",
            len(fragments),
            len(lines),
            tolerance,
        )
        return lines

    @staticmethod
    def _same_row(fragment: Fragment, row: list[Fragment], tolerance: float) -> bool:
        return (
            abs(fragment.center_y - row[-1].center_y) < tolerance
            and abs(fragment.center_y - row[0].center_y) < tolerance
        )

    def zone_of(self, rect: Rect) -> Zone:
        """Classify a rectangle by its center point alone."""
        if rect.center_y < self.config.header_split:
            if rect.center_x < self.config.column_split:
                return Zone.HEADER_LEFT
            return Zone.HEADER_RIGHT
        if rect.center_y <= self.config.footer_split:
            return Zone.BODY
        return Zone.FOOTER

    def lines_in(self, zone: Zone, lines: Iterable[Line]) -> list[Line]:
        """Lines whose bounding rectangle falls in ``zone``."""
        return [line for line in lines if self.zone_of(line.rect) == zone]

    def fragments_in(self, zone: Zone, fragments: Iterable[Fragment]) -> list[Fragment]:
        """Fragments whose rectangle falls in ``zone``."""
        return [f for f in fragments if self.zone_of(f.rect) == zone]

    def rows_in(self, zone: Zone, fragments: list[Fragment]) -> list[Line]:
        """Rows built only from the fragments of ``zone``.

        Header blocks sit side by side at the same heights; clustering
        per zone keeps the issuer block and the document details apart.
        The tolerance still comes from the whole page.
        """
        return self.cluster_rows(
            self.fragments_in(zone, fragments), tolerance=self.row_tolerance(fragments)
        )

    def detect_columns(self, lines: Iterable[Line]) -> list[float]:
        """Infer column anchors from fragment centers.

        Sorted horizontal centers are grouped greedily while the gap to
        the previous value stays under the cluster tolerance; each group
        contributes its mean as an anchor.

        Args:
            lines: Lines of one table region.

        Returns:
            Column anchors sorted left to right.
        """
        centers = sorted(f.center_x for line in lines for f in line.fragments)
        if not centers:
            return []

        anchors: list[float] = []
        cluster = [centers[0]]
        for x in centers[1:]:
            if abs(x - cluster[-1]) < self.config.column_cluster_tolerance:
                cluster.append(x)
            else:
                anchors.append(sum(cluster) / len(cluster))
                cluster = [x]
        anchors.append(sum(cluster) / len(cluster))
        return sorted(anchors)

    def column_index(self, fragment: Fragment, anchors: list[float]) -> int | None:
        """Index of the nearest anchor, or ``None`` when it is too far.

        Args:
            fragment: Fragment to place.
            anchors: Column anchors from :meth:`detect_columns`.

        Returns:
            Column index, or ``None`` if the distance to the nearest
            anchor exceeds the match tolerance.
        """
        if not anchors:
            return None
        distances = [abs(fragment.center_x - anchor) for anchor in anchors]
        nearest = min(range(len(anchors)), key=distances.__getitem__)
        if distances[nearest] > self.config.column_match_tolerance:
            return None
        return nearest

"""Positioned text primitives shared by the layout engine and strategies.

All rectangles use page-normalized coordinates in ``[0, 1]`` with the
origin at the top-left corner and ``y`` growing downward. Conversion
from other conventions happens once, in :mod:`src.ocr.adapters`.
"""

from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class Rect:
    """Axis-aligned normalized rectangle."""

    x: float
    y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def intersection_area(self, other: "Rect") -> float:
        """Area shared with ``other``; zero when they do not overlap."""
        overlap_w = min(self.max_x, other.max_x) - max(self.x, other.x)
        overlap_h = min(self.max_y, other.max_y) - max(self.y, other.y)
        if overlap_w <= 0 or overlap_h <= 0:
            return 0.0
        return overlap_w * overlap_h

    @classmethod
    def union(cls, rects: Iterable["Rect"]) -> "Rect":
        """Smallest rectangle enclosing every rectangle in ``rects``."""
        rects = list(rects)
        if not rects:
            return cls(0.0, 0.0, 0.0, 0.0)
        min_x = min(r.x for r in rects)
        min_y = min(r.y for r in rects)
        max_x = max(r.max_x for r in rects)
        max_y = max(r.max_y for r in rects)
        return cls(min_x, min_y, max_x - min_x, max_y - min_y)


@dataclass(frozen=True)
class Fragment:
    """One recognized text span with its position and OCR confidence."""

    text: str
    rect: Rect
    confidence: float = 1.0

    @property
    def center_x(self) -> float:
        return self.rect.center_x

    @property
    def center_y(self) -> float:
        return self.rect.center_y


@dataclass(frozen=True)
class Line:
    """Fragments forming one visual row, ordered left to right.

    ``text`` and ``rect`` are derived once from the members.
    """

    fragments: tuple[Fragment, ...]
    text: str = field(init=False)
    rect: Rect = field(init=False)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.fragments, key=lambda f: f.rect.x))
        object.__setattr__(self, "fragments", ordered)
        object.__setattr__(self, "text", " ".join(f.text for f in ordered))
        object.__setattr__(self, "rect", Rect.union(f.rect for f in ordered))

    @property
    def center_x(self) -> float:
        return self.rect.center_x

    @property
    def center_y(self) -> float:
        return self.rect.center_y

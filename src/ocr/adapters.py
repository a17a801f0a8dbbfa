"""Boundary adapters that turn recognizer output into fragments.

Every adapter returns :class:`Fragment` objects in the engine's
convention: normalized ``[0, 1]`` coordinates, top-left origin, ``y``
growing downward. Nothing past this module converts coordinates.
"""

from typing import Any, Iterable

from src.layout.geometry import Fragment, Rect
from src.utils.logger import get_logger

logger = get_logger(__name__)

_ORIGINS = ("top-left", "bottom-left")


def from_bottom_left(rect: Rect) -> Rect:
    """Flip a bottom-left-origin rectangle to top-left origin."""
    return Rect(rect.x, 1.0 - (rect.y + rect.height), rect.width, rect.height)


def fragments_from_tesseract(
    data: dict[str, list[Any]],
    image_width: int,
    image_height: int,
    min_confidence: float = 0.0,
) -> list[Fragment]:
    """Convert a ``pytesseract.image_to_data`` dictionary to fragments.

    Library entry point for callers that run Tesseract themselves; the
    engine, CLI and API take fragments in normalized form and never call
    it. Pixel boxes are divided by the image size. Tesseract reports
    confidence on a 0-100 scale with -1 for structural rows; those rows
    and empty words are skipped.

    Args:
        data: Output of ``image_to_data(..., output_type=Output.DICT)``.
        image_width: Source image width in pixels.
        image_height: Source image height in pixels.
        min_confidence: Minimum fragment confidence in ``[0, 1]``.

    Returns:
        Fragments in reading order of the input.

    Raises:
        ValueError: If the image dimensions are not positive.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(
            f"Image dimensions must be positive, got {image_width}x{image_height}"
        )

    fragments: list[Fragment] = []
    for i in range(len(data["text"])):
        conf = float(data["conf"][i])
        word_text = str(data["text"][i]).strip()

        if conf <= 0 or not word_text:
            continue
        confidence = conf / 100.0
        if confidence < min_confidence:
            continue

        fragments.append(
            Fragment(
                text=word_text,
                rect=Rect(
                    x=data["left"][i] / image_width,
                    y=data["top"][i] / image_height,
                    width=data["width"][i] / image_width,
                    height=data["height"][i] / image_height,
                ),
                confidence=confidence,
            )
        )

    logger.info("Converted %d Tesseract words to fragments", len(fragments))
    return fragments


def fragments_from_records(
    records: Iterable[dict[str, Any]],
    origin: str = "top-left",
) -> list[Fragment]:
    """Build fragments from plain ``{"text", "x", "y", "width", "height"}`` records.

    Args:
        records: Mappings with text, rectangle fields and an optional
            ``confidence`` (default 1.0).
        origin: ``"top-left"`` or ``"bottom-left"`` for the record
            coordinates.

    Returns:
        Fragments in top-left convention.

    Raises:
        ValueError: If ``origin`` is unknown.
        KeyError: If a record lacks a rectangle field.
    """
    if origin not in _ORIGINS:
        raise ValueError(f"Unknown coordinate origin: {origin}")

    fragments: list[Fragment] = []
    for record in records:
        rect = Rect(
            x=float(record["x"]),
            y=float(record["y"]),
            width=float(record["width"]),
            height=float(record["height"]),
        )
        if origin == "bottom-left":
            rect = from_bottom_left(rect)
        fragments.append(
            Fragment(
                text=str(record.get("text", "")),
                rect=rect,
                confidence=float(record.get("confidence", 1.0)),
            )
        )
    return fragments


def document_from_payload(
    payload: Any, origin: str = "top-left"
) -> tuple[list[Fragment], str | None]:
    """Split a decoded JSON document into fragments and raw text.

    Args:
        payload: A list of fragment records, or a mapping with optional
            ``fragments``, ``raw_text`` and ``origin`` keys.
        origin: Coordinate origin used when the payload names none.

    Returns:
        Tuple of (fragments, raw_text).

    Raises:
        ValueError: If the payload has an unexpected shape.
    """
    if isinstance(payload, list):
        return fragments_from_records(payload, origin), None
    if isinstance(payload, dict):
        origin = payload.get("origin", origin)
        fragments = fragments_from_records(payload.get("fragments", []), origin)
        return fragments, payload.get("raw_text")
    raise ValueError(f"Unsupported document payload: {type(payload).__name__}")

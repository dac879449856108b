"""
Projector: Map matched token boxes into normalized overlay rectangles.

Rectangles are fractions of the image width/height so any renderer can
position them regardless of on-screen size. When the true image dimensions
are unknown a degraded fixed-size rectangle is produced instead.
"""

import logging
from typing import Iterable, List, Optional

from label_lens.schema import MatchedAnnotation, NormalizedRect, OverlayRect

logger = logging.getLogger(__name__)

# Degraded projection policy
FALLBACK_REFERENCE_DIMENSION = 400.0
FALLBACK_WIDTH = 0.15
FALLBACK_HEIGHT = 0.05


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def has_dimensions(image_width: Optional[float], image_height: Optional[float]) -> bool:
    """True when both dimensions are present and positive."""
    return (
        image_width is not None
        and image_height is not None
        and image_width > 0
        and image_height > 0
    )


def _exact_rect(annotation: MatchedAnnotation, image_width: float, image_height: float) -> NormalizedRect:
    bbox = annotation.source_token.bbox

    left = _clamp(bbox.x0 / image_width)
    top = _clamp(bbox.y0 / image_height)
    width = _clamp(bbox.width / image_width, high=1.0 - left)
    height = _clamp(bbox.height / image_height, high=1.0 - top)

    return NormalizedRect(left=left, top=top, width=width, height=height)


def _fallback_rect(annotation: MatchedAnnotation) -> NormalizedRect:
    bbox = annotation.source_token.bbox

    left = _clamp(bbox.x0 / FALLBACK_REFERENCE_DIMENSION, high=1.0 - FALLBACK_WIDTH)
    top = _clamp(bbox.y0 / FALLBACK_REFERENCE_DIMENSION, high=1.0 - FALLBACK_HEIGHT)

    return NormalizedRect(
        left=left, top=top, width=FALLBACK_WIDTH, height=FALLBACK_HEIGHT
    )


def project(
    annotation: MatchedAnnotation,
    image_width: Optional[float] = None,
    image_height: Optional[float] = None,
    warn: bool = True,
) -> OverlayRect:
    """
    Project one annotation into a normalized overlay rectangle.

    Args:
        annotation: Matched token to highlight
        image_width: Pixel width of the image the OCR ran against
        image_height: Pixel height of the image the OCR ran against
        warn: Log the degraded-projection warning

    Returns:
        OverlayRect with every coordinate in [0, 1]
    """
    label = annotation.source_token.text

    if has_dimensions(image_width, image_height):
        return OverlayRect(
            label=label, rect=_exact_rect(annotation, image_width, image_height)
        )

    if warn:
        logger.warning(
            f"Image dimensions unavailable ({image_width}x{image_height}); "
            f"using degraded projection for {label!r}"
        )
    return OverlayRect(label=label, rect=_fallback_rect(annotation), degraded=True)


def project_all(
    annotations: Iterable[MatchedAnnotation],
    image_width: Optional[float] = None,
    image_height: Optional[float] = None,
) -> List[OverlayRect]:
    """Project annotations in order, warning once if degraded."""
    overlays = [
        project(annotation, image_width, image_height, warn=False)
        for annotation in annotations
    ]

    if overlays and not has_dimensions(image_width, image_height):
        logger.warning(
            f"Image dimensions unavailable ({image_width}x{image_height}); "
            f"{len(overlays)} overlay(s) use degraded projection"
        )
    return overlays

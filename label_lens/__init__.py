"""
Label Lens - Highlight flagged ingredients on photographed food labels.

Joins OCR tokens (text, pixel box, confidence) with the ingredient strings
an external classifier flagged, and produces normalized highlight
rectangles any renderer can draw over the displayed image.

Usage:
    from label_lens import build_scan_result

    result = build_scan_result(full_text, tokens, ["High Fructose Corn Syrup"],
                               image_width=1920, image_height=1080)
    for overlay in result.overlays:
        print(overlay.label, overlay.rect)

Service Usage:
    from label_lens import ScanService

    service = ScanService()
    result = await service.scan_image("label.jpg")
"""

from label_lens.schema import (
    BoundingBox,
    FlaggedTerm,
    MatchedAnnotation,
    NormalizedRect,
    OverlayRect,
    RecognizedToken,
    ScanResult,
    ScanStatus,
)
from label_lens.matcher import match, normalize
from label_lens.projector import project, project_all
from label_lens.ocr_adapter import OCRPage, TesseractRecognizer, flatten_ocr_output
from label_lens.config import LensConfig
from label_lens.classifier import (
    ClassificationError,
    ClassificationResult,
    ClassifierRouter,
)
from label_lens.scan_service import ScanService, build_scan_result, reproject_scan

__version__ = "1.0.0"

__all__ = [
    # Core
    "match",
    "normalize",
    "project",
    "project_all",
    "build_scan_result",
    "reproject_scan",
    # Schema
    "BoundingBox",
    "RecognizedToken",
    "FlaggedTerm",
    "MatchedAnnotation",
    "NormalizedRect",
    "OverlayRect",
    "ScanResult",
    "ScanStatus",
    # OCR boundary
    "OCRPage",
    "TesseractRecognizer",
    "flatten_ocr_output",
    # Classification
    "ClassificationError",
    "ClassificationResult",
    "ClassifierRouter",
    # Service wrapper
    "ScanService",
    "LensConfig",
]

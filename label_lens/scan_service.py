"""
Scan Service: Join OCR output and classifier verdicts into a ScanResult.

build_scan_result is the pure pipeline (image, tokens, terms) -> ScanResult.
ScanService wraps it with the asynchronous collaborators: OCR and the
ingredient classifier.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from label_lens.classifier.classifier_router import ClassifierRouter
from label_lens.classifier.classifier_types import ClassificationError
from label_lens.config import LensConfig
from label_lens.matcher import (
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_MIN_TOKEN_LENGTH,
    TermInput,
    TokenInput,
    coerce_term,
    match,
)
from label_lens.ocr_adapter import OCRPage, TesseractRecognizer, flatten_ocr_output
from label_lens.projector import project_all
from label_lens.schema import ScanResult, ScanStatus

logger = logging.getLogger(__name__)

# Shorter recognized text is not worth a classifier call
MIN_TEXT_LENGTH = 5


def build_scan_result(
    full_text: str,
    tokens: Iterable[TokenInput],
    terms: Iterable[TermInput],
    image_width: Optional[float] = None,
    image_height: Optional[float] = None,
    image_ref: Optional[str] = None,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    min_token_length: int = DEFAULT_MIN_TOKEN_LENGTH,
    keep_digits: bool = True,
) -> ScanResult:
    """
    Match tokens against flagged terms and project the hits.

    Args:
        full_text: Whole recognized text of the label
        tokens: OCR tokens in reading order
        terms: Flagged ingredient strings from the classifier
        image_width: True pixel width of the OCR'd image, if known
        image_height: True pixel height of the OCR'd image, if known
        image_ref: Opaque reference to the captured image

    Returns:
        ScanResult with overlays in token order
    """
    flagged = [term for term in (coerce_term(t) for t in terms) if term is not None]

    annotations = match(
        tokens,
        flagged,
        min_confidence=min_confidence,
        min_token_length=min_token_length,
        keep_digits=keep_digits,
    )
    overlays = project_all(annotations, image_width, image_height)

    return ScanResult(
        image_ref=image_ref,
        full_text=full_text,
        flagged_terms=[term.text for term in flagged],
        annotations=annotations,
        overlays=overlays,
        status=ScanStatus.FLAGGED if overlays else ScanStatus.CLEAN,
        image_width=image_width,
        image_height=image_height,
    )


def reproject_scan(
    result: ScanResult,
    image_width: Optional[float],
    image_height: Optional[float],
) -> ScanResult:
    """Return a copy of the result with overlays recomputed for new dimensions."""
    overlays = project_all(result.annotations, image_width, image_height)
    return result.model_copy(
        update={
            "overlays": overlays,
            "image_width": image_width,
            "image_height": image_height,
        }
    )


class ScanService:
    """
    High-level scan service.

    Accepts raw OCR output (or an image path), forwards the recognized text
    to the classifier and returns a ScanResult with highlight overlays.
    """

    def __init__(
        self,
        classifier: Optional[ClassifierRouter] = None,
        config: Optional[LensConfig] = None,
        recognizer: Optional[TesseractRecognizer] = None,
    ):
        self.config = config or LensConfig.from_env()
        self._classifier = classifier
        self._recognizer = recognizer
        self.scan_count = 0
        self.last_result: Optional[ScanResult] = None

    @property
    def classifier(self) -> ClassifierRouter:
        if self._classifier is None:
            self._classifier = ClassifierRouter.from_config(self.config)
        return self._classifier

    @property
    def recognizer(self) -> TesseractRecognizer:
        if self._recognizer is None:
            self._recognizer = TesseractRecognizer()
        return self._recognizer

    async def scan(
        self,
        ocr_output: Union[OCRPage, Mapping[str, Any]],
        image_ref: Optional[str] = None,
        image_width: Optional[float] = None,
        image_height: Optional[float] = None,
    ) -> ScanResult:
        """
        Run classification and matching for one completed OCR pass.

        Raises:
            ClassificationError: the classifier returned an error
        """
        start_time = time.time()
        self.scan_count += 1

        if isinstance(ocr_output, OCRPage):
            page = ocr_output
        else:
            page = flatten_ocr_output(ocr_output, image_width, image_height)

        width = image_width or page.image_width
        height = image_height or page.image_height

        logger.info(f"OCR read {len(page.tokens)} word(s): {page.text[:30]!r}")

        if len(page.text) < MIN_TEXT_LENGTH:
            logger.warning(
                f"Recognized text too short ({len(page.text)} chars); skipping classification"
            )
            result = build_scan_result(
                page.text, page.tokens, [], width, height, image_ref
            )
            self.last_result = result
            return result

        verdict = await self.classifier.classify(page.text)
        if not verdict.ok:
            raise ClassificationError(verdict.error)

        logger.info(f"Classifier flagged: {verdict.bad_ingredients}")

        result = build_scan_result(
            page.text,
            page.tokens,
            verdict.bad_ingredients,
            width,
            height,
            image_ref,
            min_confidence=self.config.min_confidence,
            min_token_length=self.config.min_token_length,
            keep_digits=self.config.keep_digits,
        )
        logger.info(
            f"Scan {self.scan_count}: {len(result.overlays)} overlay(s), "
            f"status={result.status.value} ({(time.time() - start_time) * 1000:.0f}ms)"
        )
        self.last_result = result
        return result

    async def scan_image(self, image_path: str) -> ScanResult:
        """OCR an image file in a worker thread, then scan it."""
        page = await asyncio.to_thread(self.recognizer.recognize, image_path)
        return await self.scan(page, image_ref=str(image_path))

    def get_health(self) -> Dict[str, Any]:
        """Get service health status."""
        return {
            "name": "scan",
            "healthy": True,
            "status": "ready" if self.scan_count else "idle",
            "details": {
                "scan_count": self.scan_count,
                "provider": self.config.provider,
                "last_status": self.last_result.status.value
                if self.last_result
                else None,
            },
        }

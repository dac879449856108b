"""
OCR Adapter: Flatten OCR engine output into RecognizedToken sequences.

Accepts the two shapes seen in practice:
- Tesseract.js-style results: a flat "words" list, or nested
  blocks -> paragraphs -> lines -> words when the flat list is empty
- pytesseract image_to_data(output_type=Output.DICT) column dicts

TesseractRecognizer runs pytesseract locally and records the true image
dimensions so projection never has to guess.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from label_lens.matcher import coerce_token
from label_lens.schema import RecognizedToken

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

# pytesseract reports -1 for structural (block/paragraph/line) rows
_STRUCTURAL_CONF = -1


@dataclass
class OCRPage:
    """Flattened OCR output for one image."""

    text: str
    tokens: List[RecognizedToken]
    image_width: Optional[float] = None
    image_height: Optional[float] = None
    skipped: int = 0
    source: str = "unknown"

    @property
    def has_dimensions(self) -> bool:
        return bool(self.image_width and self.image_height)


def collapse_text(text: str) -> str:
    """Join OCR lines into one line of single-spaced text."""
    return _WHITESPACE.sub(" ", text or "").strip()


def _nested_words(raw: Mapping[str, Any]) -> Tuple[List[Any], int]:
    """Walk blocks -> paragraphs -> lines -> words, counting junk nodes."""
    words: List[Any] = []
    skipped = 0
    for block in raw.get("blocks") or []:
        if not isinstance(block, Mapping):
            skipped += 1
            continue
        for para in block.get("paragraphs") or []:
            if not isinstance(para, Mapping):
                skipped += 1
                continue
            for line in para.get("lines") or []:
                if not isinstance(line, Mapping):
                    skipped += 1
                    continue
                words.extend(line.get("words") or [])
    return words, skipped


def _tesseract_js_words(raw: Mapping[str, Any]) -> Tuple[List[Any], int]:
    words = list(raw.get("words") or [])
    if not words and raw.get("blocks"):
        return _nested_words(raw)
    return words, 0


def _image_to_data_words(raw: Mapping[str, Any]) -> Iterator[Dict[str, Any]]:
    texts = raw.get("text") or []
    confs = raw.get("conf") or []

    for i, text in enumerate(texts):
        if text is None or not str(text).strip():
            continue

        try:
            conf = float(confs[i]) if i < len(confs) else None
            if conf == _STRUCTURAL_CONF:
                continue
            left = float(raw["left"][i])
            top = float(raw["top"][i])
            width = float(raw["width"][i])
            height = float(raw["height"][i])
        except (KeyError, IndexError, TypeError, ValueError):
            # Leave bbox out so validation rejects and counts it
            yield {"text": str(text).strip()}
            continue

        yield {
            "text": str(text).strip(),
            "bbox": {"x0": left, "y0": top, "x1": left + width, "y1": top + height},
            "confidence": conf,
        }


def _is_image_to_data(raw: Mapping[str, Any]) -> bool:
    return isinstance(raw.get("text"), list) and "left" in raw


def flatten_ocr_output(
    raw: Mapping[str, Any],
    image_width: Optional[float] = None,
    image_height: Optional[float] = None,
) -> OCRPage:
    """
    Normalize one OCR result into an OCRPage.

    Malformed words (no text, no bbox, bad numbers) are skipped, never fatal.

    Args:
        raw: Tesseract.js-style or pytesseract image_to_data mapping
        image_width: True pixel width of the recognized image, if known
        image_height: True pixel height of the recognized image, if known
    """
    if _is_image_to_data(raw):
        candidates = list(_image_to_data_words(raw))
        skipped = 0
        full_text = ""
        source = "image_to_data"
    else:
        candidates, skipped = _tesseract_js_words(raw)
        full_text = raw.get("text") or ""
        source = "tesseract_js"

    tokens = []
    for candidate in candidates:
        token = coerce_token(candidate)
        if token is None:
            skipped += 1
            continue
        tokens.append(token)

    if not full_text:
        full_text = " ".join(token.text for token in tokens)

    if skipped:
        logger.warning(f"OCR output had {skipped} malformed word(s); skipped")

    return OCRPage(
        text=collapse_text(full_text),
        tokens=tokens,
        image_width=image_width or raw.get("image_width"),
        image_height=image_height or raw.get("image_height"),
        skipped=skipped,
        source=source,
    )


class TesseractRecognizer:
    """
    Local Tesseract OCR via pytesseract.

    Requires: pip install pytesseract pillow, plus the tesseract binary.
    """

    def __init__(self, lang: str = "eng", config: str = "--oem 3 --psm 6"):
        self.lang = lang
        self.config = config
        self.recognize_count = 0
        self._available: Optional[bool] = None

    @property
    def is_available(self) -> bool:
        """Check that pytesseract imports and the binary answers."""
        if self._available is None:
            try:
                import pytesseract

                pytesseract.get_tesseract_version()
                self._available = True
            except Exception as e:
                logger.warning(f"Tesseract not available: {e}")
                self._available = False
        return self._available

    def recognize(self, image_path: str) -> OCRPage:
        """
        Run OCR on an image file.

        Args:
            image_path: Path to a still frame of the label

        Returns:
            OCRPage carrying the image's true pixel dimensions
        """
        try:
            import pytesseract
            from PIL import Image
        except ImportError as e:
            raise ImportError(
                "pytesseract and pillow are required. Install with: "
                "pip install pytesseract pillow"
            ) from e

        path = Path(image_path)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")

        self.recognize_count += 1

        with Image.open(path) as image:
            width, height = image.size
            data = pytesseract.image_to_data(
                image,
                lang=self.lang,
                config=self.config,
                output_type=pytesseract.Output.DICT,
            )

        page = flatten_ocr_output(data, image_width=width, image_height=height)
        page.source = "tesseract"
        logger.info(
            f"Recognized {len(page.tokens)} word(s) in {path.name} ({width}x{height})"
        )
        return page

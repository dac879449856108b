"""
Scan Schema: Pydantic models for OCR tokens, flagged terms and overlays.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ScanStatus(str, Enum):
    """Terminal status of a scan."""

    CLEAN = "clean"
    FLAGGED = "flagged"


class BoundingBox(BaseModel):
    """Pixel box in the coordinate space of the OCR-processed image."""

    model_config = ConfigDict(frozen=True)

    x0: float
    y0: float
    x1: float
    y1: float

    @model_validator(mode="after")
    def validate_corners(self):
        """Reject boxes whose far corner lies before the near one."""
        if self.x1 < self.x0 or self.y1 < self.y0:
            raise ValueError(
                f"Inverted box: ({self.x0}, {self.y0}) -> ({self.x1}, {self.y1})"
            )
        return self

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0


class RecognizedToken(BaseModel):
    """One OCR-detected word."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="Raw recognized word")
    bbox: BoundingBox = Field(..., description="Word bounding box in OCR pixels")
    confidence: Optional[float] = Field(
        None, ge=0.0, le=100.0, description="OCR confidence (0-100), if supplied"
    )

    @field_validator("text")
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError("Token text is blank")
        return v


class FlaggedTerm(BaseModel):
    """One ingredient string returned by the classifier."""

    model_config = ConfigDict(frozen=True)

    text: str


class MatchedAnnotation(BaseModel):
    """A token judged to correspond to a flagged term."""

    model_config = ConfigDict(frozen=True)

    source_token: RecognizedToken
    matched_term: Optional[FlaggedTerm] = None


class NormalizedRect(BaseModel):
    """Rectangle as fractions of the displayed image's width and height."""

    model_config = ConfigDict(frozen=True)

    left: float = Field(..., ge=0.0, le=1.0)
    top: float = Field(..., ge=0.0, le=1.0)
    width: float = Field(..., ge=0.0, le=1.0)
    height: float = Field(..., ge=0.0, le=1.0)


class OverlayRect(BaseModel):
    """Renderer-agnostic highlight region."""

    model_config = ConfigDict(frozen=True)

    label: str
    rect: NormalizedRect
    degraded: bool = False


class ScanResult(BaseModel):
    """Aggregate of one completed scan."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "image_ref": "label_0001.jpg",
                "full_text": "INGREDIENTS: SUGAR, SALT, RED 40",
                "flagged_terms": ["Sugar", "Red 40"],
                "overlays": [
                    {
                        "label": "SUGAR,",
                        "rect": {"left": 0.31, "top": 0.1, "width": 0.12, "height": 0.04},
                        "degraded": False,
                    }
                ],
                "status": "flagged",
                "image_width": 1920,
                "image_height": 1080,
            }
        },
    )

    image_ref: Optional[str] = None
    full_text: str = ""
    flagged_terms: List[str] = Field(default_factory=list)
    annotations: List[MatchedAnnotation] = Field(default_factory=list)
    overlays: List[OverlayRect] = Field(default_factory=list)
    status: ScanStatus = ScanStatus.CLEAN
    image_width: Optional[float] = None
    image_height: Optional[float] = None

    @model_validator(mode="after")
    def validate_status(self):
        """Status must agree with the overlays."""
        expected = ScanStatus.FLAGGED if self.overlays else ScanStatus.CLEAN
        if self.status != expected:
            raise ValueError(
                f"Status {self.status.value} does not match {len(self.overlays)} overlays"
            )
        return self

    @property
    def is_flagged(self) -> bool:
        return self.status == ScanStatus.FLAGGED

    @property
    def labels(self) -> List[str]:
        """Highlighted words in draw order."""
        return [overlay.label for overlay in self.overlays]

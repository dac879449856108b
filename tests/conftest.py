"""Shared fixtures for tests."""

import pytest

from label_lens.classifier import reset_classifier_router
from label_lens.schema import BoundingBox, RecognizedToken


def make_token(text, x0=0, y0=0, x1=50, y1=20, confidence=90.0):
    return RecognizedToken(
        text=text,
        bbox=BoundingBox(x0=x0, y0=y0, x1=x1, y1=y1),
        confidence=confidence,
    )


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture(autouse=True)
def _reset_router():
    reset_classifier_router()
    yield
    reset_classifier_router()


@pytest.fixture
def red_40_tokens():
    """'Red', '40', 'Salt' on one 200x20 line."""
    return [
        make_token("Red", 0, 0, 50, 20, 90),
        make_token("40", 55, 0, 90, 20, 88),
        make_token("Salt", 100, 0, 150, 20, 95),
    ]


@pytest.fixture
def label_tokens():
    """An ingredients line as Tesseract splits it."""
    return [
        make_token("INGREDIENTS:", 10, 10, 160, 40, 93),
        make_token("WATER,", 170, 10, 250, 40, 91),
        make_token("HIGH", 260, 10, 320, 40, 89),
        make_token("FRUCTOSE", 330, 10, 450, 40, 87),
        make_token("CORN", 460, 10, 530, 40, 92),
        make_token("SYRUP,", 540, 10, 630, 40, 90),
        make_token("SALT,", 640, 10, 700, 40, 95),
        make_token("SODIUM", 10, 50, 110, 80, 84),
        make_token("BENZOATE", 120, 50, 250, 80, 42),
    ]


@pytest.fixture
def tesseract_js_nested():
    """Tesseract.js result with words only under blocks."""
    return {
        "text": "INGREDIENTS: SUGAR,\nSALT, RED 40\n",
        "words": [],
        "blocks": [
            {
                "paragraphs": [
                    {
                        "lines": [
                            {
                                "words": [
                                    {
                                        "text": "INGREDIENTS:",
                                        "bbox": {"x0": 12, "y0": 8, "x1": 170, "y1": 36},
                                        "confidence": 91.2,
                                    },
                                    {
                                        "text": "SUGAR,",
                                        "bbox": {"x0": 180, "y0": 8, "x1": 262, "y1": 36},
                                        "confidence": 88.0,
                                    },
                                ]
                            },
                            {
                                "words": [
                                    {
                                        "text": "SALT,",
                                        "bbox": {"x0": 12, "y0": 44, "x1": 80, "y1": 72},
                                        "confidence": 95.5,
                                    },
                                    {
                                        "text": "RED",
                                        "bbox": {"x0": 90, "y0": 44, "x1": 140, "y1": 72},
                                        "confidence": 80.1,
                                    },
                                    {
                                        "text": "40",
                                        "bbox": {"x0": 146, "y0": 44, "x1": 176, "y1": 72},
                                        "confidence": 77.3,
                                    },
                                ]
                            },
                        ]
                    }
                ]
            }
        ],
    }


@pytest.fixture
def image_to_data_dict():
    """pytesseract image_to_data(output_type=Output.DICT) output."""
    return {
        "level": [1, 2, 3, 4, 5, 5, 5],
        "text": ["", "", "", "", "Sugar,", "dextrose", "Salt"],
        "left": [0, 10, 10, 10, 10, 90, 200],
        "top": [0, 10, 10, 10, 10, 10, 10],
        "width": [400, 300, 300, 300, 70, 100, 50],
        "height": [100, 30, 30, 30, 30, 30, 30],
        "conf": [-1, -1, -1, -1, 96.1, 45.0, 91.7],
    }

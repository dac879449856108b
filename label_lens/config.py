"""
Configuration read from the environment.

- LABEL_LENS_PROVIDER: "auto" | "http" | "ollama" | "claude" (default: "auto")
- LABEL_LENS_CLASSIFIER_URL: analyze endpoint for the "http" provider
- OLLAMA_HOST: Ollama server URL (default: http://localhost:11434)
- OLLAMA_MODEL: Ollama text model (default: qwen2.5:7b)
- CLAUDE_MODEL: Claude model (default: claude-sonnet-4-20250514)
- LABEL_LENS_MIN_CONFIDENCE: OCR confidence gate, 0-100 (default: 60)
- LABEL_LENS_MIN_TOKEN_LENGTH: tokens must be longer than this (default: 3)
- LABEL_LENS_KEEP_DIGITS: keep digits when normalizing (default: true)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from label_lens.matcher import DEFAULT_MIN_CONFIDENCE, DEFAULT_MIN_TOKEN_LENGTH

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid {name}={value!r}; using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid {name}={value!r}; using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class LensConfig:
    """Runtime settings for classification and matching."""

    provider: str = "auto"
    classifier_url: Optional[str] = None
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5:7b"
    claude_model: str = "claude-sonnet-4-20250514"
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    min_token_length: int = DEFAULT_MIN_TOKEN_LENGTH
    keep_digits: bool = True

    @classmethod
    def from_env(cls) -> "LensConfig":
        return cls(
            provider=os.getenv("LABEL_LENS_PROVIDER", "auto").lower(),
            classifier_url=os.getenv("LABEL_LENS_CLASSIFIER_URL") or None,
            ollama_host=os.getenv("OLLAMA_HOST", "http://localhost:11434"),
            ollama_model=os.getenv("OLLAMA_MODEL", "qwen2.5:7b"),
            claude_model=os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514"),
            min_confidence=_env_float("LABEL_LENS_MIN_CONFIDENCE", DEFAULT_MIN_CONFIDENCE),
            min_token_length=_env_int("LABEL_LENS_MIN_TOKEN_LENGTH", DEFAULT_MIN_TOKEN_LENGTH),
            keep_digits=_env_bool("LABEL_LENS_KEEP_DIGITS", True),
        )

"""
Claude Classifier: Anthropic Claude for high-quality ingredient flagging.

Requires: pip install anthropic
Requires: ANTHROPIC_API_KEY environment variable
"""

import asyncio
import logging
import os
import time

from label_lens.classifier.classifier_types import (
    SYSTEM_PROMPT,
    ClassificationResult,
    parse_classification,
    parse_json_response,
)

try:
    import anthropic

    ANTHROPIC_AVAILABLE = True
except ImportError:
    ANTHROPIC_AVAILABLE = False

logger = logging.getLogger(__name__)


class ClaudeClassifier:
    """
    Claude-based ingredient classifier.

    Best for noisy OCR text where a small local model misses typos.
    """

    COST_PER_CALL = 0.003

    def __init__(self, model: str = "claude-sonnet-4-20250514", verbose: bool = True):
        if not ANTHROPIC_AVAILABLE:
            raise ImportError(
                "anthropic package not installed. Install with: pip install anthropic"
            )

        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY not set. Either:\n"
                "  1. Set ANTHROPIC_API_KEY environment variable, or\n"
                '  2. Use ClassifierRouter(provider="ollama") for free local Ollama'
            )

        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model
        self.call_count = 0
        self.verbose = verbose

    def classify_sync(self, text: str) -> ClassificationResult:
        """Flag undesirable ingredients in the label text (blocking)."""
        self.call_count += 1
        start_time = time.time()

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=1024,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": text}],
            )
        except anthropic.APIError as e:
            logger.error(f"Claude classification error: {e}")
            return ClassificationResult(
                error=str(e),
                provider="claude",
                elapsed_ms=(time.time() - start_time) * 1000,
            )

        elapsed = (time.time() - start_time) * 1000
        try:
            raw_response = response.content[0].text
        except (IndexError, AttributeError, TypeError):
            logger.error("Claude reply had no text content")
            return ClassificationResult(
                error="Claude reply had no text content",
                provider="claude",
                elapsed_ms=elapsed,
            )

        result = parse_classification(
            parse_json_response(raw_response), provider="claude", elapsed_ms=elapsed
        )
        if self.verbose:
            logger.info(
                f"Claude flagged {len(result.bad_ingredients)} ingredient(s) in {elapsed:.0f}ms"
            )
        return result

    async def classify(self, text: str) -> ClassificationResult:
        """Async wrapper that keeps the SDK call off the event loop."""
        return await asyncio.to_thread(self.classify_sync, text)

    def get_call_count(self) -> int:
        return self.call_count

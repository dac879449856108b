"""
HTTP Classifier: POST label text to an analysis endpoint.

Wire contract:
    request:  {"text": "..."}
    response: {"bad_ingredients": ["..."]} or {"error": "..."}
"""

import logging
import time
from typing import Dict

import httpx

from label_lens.classifier.classifier_types import (
    ClassificationResult,
    parse_classification,
)

logger = logging.getLogger(__name__)


class HttpClassifier:
    """Client for a remote analyze endpoint."""

    def __init__(self, endpoint: str, timeout: float = 30.0):
        self.endpoint = endpoint
        self.timeout = timeout
        self.call_count = 0
        self.total_time_ms = 0.0

    async def classify(self, text: str) -> ClassificationResult:
        """Send the full recognized text and parse the verdict."""
        self.call_count += 1
        start_time = time.time()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, json={"text": text})
            elapsed = (time.time() - start_time) * 1000
            self.total_time_ms += elapsed

            try:
                payload = response.json()
            except ValueError:
                payload = {}

            if response.status_code != 200:
                error = payload.get("error") if isinstance(payload, dict) else None
                return ClassificationResult(
                    error=error or f"API Error {response.status_code}",
                    provider="http",
                    elapsed_ms=elapsed,
                )

            return parse_classification(payload, provider="http", elapsed_ms=elapsed)

        except httpx.HTTPError as e:
            logger.error(f"Classifier request to {self.endpoint} failed: {e}")
            return ClassificationResult(
                error=str(e),
                provider="http",
                elapsed_ms=(time.time() - start_time) * 1000,
            )

    def get_stats(self) -> Dict:
        return {
            "call_count": self.call_count,
            "total_time_ms": self.total_time_ms,
            "avg_time_ms": self.total_time_ms / max(self.call_count, 1),
            "endpoint": self.endpoint,
        }

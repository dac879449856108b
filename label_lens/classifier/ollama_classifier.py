"""
Ollama Classifier: Local text model via Ollama for free ingredient flagging.

Setup:
    brew install ollama && ollama serve
    ollama pull qwen2.5:7b
"""

import logging
import time
from typing import Dict, Optional

import httpx

from label_lens.classifier.classifier_types import (
    SYSTEM_PROMPT,
    ClassificationResult,
    parse_classification,
    parse_json_response,
)

logger = logging.getLogger(__name__)


class OllamaClassifier:
    """
    Ingredient classifier backed by a local Ollama model.

    Cost: $0 (local)
    Speed: 1-5s per label (depending on hardware)
    """

    def __init__(
        self,
        ollama_host: str = "http://localhost:11434",
        model: str = "qwen2.5:7b",
        timeout: float = 60.0,
        verbose: bool = True,
    ):
        self.ollama_host = ollama_host.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.verbose = verbose
        self.call_count = 0
        self.total_time_ms = 0.0
        self._available: Optional[bool] = None

    async def is_available(self) -> bool:
        """Check if Ollama is running and the model is pulled."""
        if self._available is not None:
            return self._available

        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self.ollama_host}/api/tags")
                if response.status_code != 200:
                    self._available = False
                    return False

                models = response.json().get("models", [])
                model_names = [m.get("name", "") for m in models]
                self._available = any(self.model in name for name in model_names)

                if not self._available and self.verbose:
                    logger.info(
                        f"Ollama model '{self.model}' not found "
                        f"(available: {model_names}); run: ollama pull {self.model}"
                    )

                return self._available

        except Exception as e:
            if self.verbose:
                logger.info(f"Ollama not available: {e}")
            self._available = False
            return False

    async def classify(self, text: str) -> ClassificationResult:
        """Flag undesirable ingredients in the label text."""
        if not await self.is_available():
            return ClassificationResult(
                error="Ollama not available", provider="ollama"
            )

        start_time = time.time()
        try:
            payload = await self._call_ollama(text)
        except Exception as e:
            logger.error(f"Ollama classification error: {e}")
            return ClassificationResult(
                error=str(e),
                provider="ollama",
                elapsed_ms=(time.time() - start_time) * 1000,
            )

        elapsed = (time.time() - start_time) * 1000
        self.total_time_ms += elapsed
        if self.verbose:
            logger.info(f"Ollama classified label in {elapsed:.0f}ms")
        return parse_classification(payload, provider="ollama", elapsed_ms=elapsed)

    async def _call_ollama(self, text: str) -> Dict:
        """Make API call to Ollama."""
        self.call_count += 1

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.ollama_host}/api/generate",
                json={
                    "model": self.model,
                    "system": SYSTEM_PROMPT,
                    "prompt": text,
                    "stream": False,
                    "format": "json",
                },
            )

            if response.status_code != 200:
                raise RuntimeError(f"Ollama error: {response.status_code} - {response.text}")

            result = response.json()
            return parse_json_response(result.get("response", "{}"))

    def get_stats(self) -> Dict:
        """Get usage statistics."""
        return {
            "call_count": self.call_count,
            "total_time_ms": self.total_time_ms,
            "avg_time_ms": self.total_time_ms / max(self.call_count, 1),
            "model": self.model,
            "cost": 0.0,
        }

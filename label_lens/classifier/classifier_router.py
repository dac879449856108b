"""
Classifier Router: Unified interface for ingredient classifier providers.

Routes requests based on provider setting:
- "http": POST to a configured analyze endpoint
- "ollama": Always use a local Ollama model (free)
- "claude": Always use Claude (costs money, best quality)
- "auto": endpoint if configured, else Ollama, else Claude

Usage:
    from label_lens.classifier import ClassifierRouter

    router = ClassifierRouter(provider="auto")
    result = await router.classify("INGREDIENTS: SUGAR, SALT, RED 40")
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from label_lens.classifier.classifier_types import ClassificationResult
from label_lens.classifier.http_classifier import HttpClassifier
from label_lens.classifier.ollama_classifier import OllamaClassifier
from label_lens.config import LensConfig

logger = logging.getLogger(__name__)


@dataclass
class ClassifierStats:
    """Track classifier usage across providers."""

    http_calls: int = 0
    ollama_calls: int = 0
    claude_calls: int = 0
    claude_cost_usd: float = 0.0
    total_time_ms: float = 0
    errors: int = 0


class ClassifierRouter:
    """Routes classification requests to the configured provider."""

    CLAUDE_COST_PER_CALL = 0.003

    def __init__(
        self,
        provider: str = "auto",
        classifier_url: Optional[str] = None,
        claude_model: str = "claude-sonnet-4-20250514",
        ollama_host: str = "http://localhost:11434",
        ollama_model: str = "qwen2.5:7b",
        verbose: bool = True,
    ):
        self.provider = provider.lower()
        self.verbose = verbose
        self.stats = ClassifierStats()

        self._http_client: Optional[HttpClassifier] = None
        self._ollama_client: Optional[OllamaClassifier] = None
        self._claude_client = None

        self._classifier_url = classifier_url
        self._claude_model = claude_model
        self._ollama_host = ollama_host
        self._ollama_model = ollama_model

        if self.verbose:
            provider_info = {
                "http": f"HTTP endpoint ({classifier_url})",
                "ollama": "Ollama (local, free)",
                "claude": "Claude (API, best quality)",
                "auto": "Auto (endpoint -> Ollama -> Claude)",
            }.get(self.provider, self.provider)
            logger.info(f"Classifier Router: {provider_info}")

    @classmethod
    def from_config(cls, config: LensConfig, verbose: bool = True) -> "ClassifierRouter":
        """Build a router from a LensConfig."""
        return cls(
            provider=config.provider,
            classifier_url=config.classifier_url,
            claude_model=config.claude_model,
            ollama_host=config.ollama_host,
            ollama_model=config.ollama_model,
            verbose=verbose,
        )

    @property
    def http(self) -> Optional[HttpClassifier]:
        """Get or create the endpoint client (None without a URL)."""
        if self._http_client is None and self._classifier_url:
            self._http_client = HttpClassifier(self._classifier_url)
        return self._http_client

    @property
    def ollama(self) -> OllamaClassifier:
        """Get or create Ollama client."""
        if self._ollama_client is None:
            self._ollama_client = OllamaClassifier(
                ollama_host=self._ollama_host,
                model=self._ollama_model,
                verbose=self.verbose,
            )
        return self._ollama_client

    @property
    def claude(self):
        """Get or create Claude client (returns None if unavailable)."""
        if self._claude_client is None:
            try:
                from label_lens.classifier.claude_classifier import ClaudeClassifier

                self._claude_client = ClaudeClassifier(
                    model=self._claude_model, verbose=self.verbose
                )
            except (ImportError, ValueError) as e:
                if self.verbose:
                    logger.info(f"Claude classifier not available: {e}")
                return None
        return self._claude_client

    async def _classify_http(self, text: str) -> ClassificationResult:
        if self.http is None:
            return ClassificationResult(
                error="No classifier endpoint configured", provider="http"
            )
        self.stats.http_calls += 1
        return await self.http.classify(text)

    async def _classify_ollama(self, text: str) -> ClassificationResult:
        self.stats.ollama_calls += 1
        return await self.ollama.classify(text)

    async def _classify_claude(self, text: str) -> ClassificationResult:
        claude_client = self.claude
        if claude_client is None:
            return ClassificationResult(
                error="Claude not available", provider="claude"
            )
        self.stats.claude_calls += 1
        self.stats.claude_cost_usd += self.CLAUDE_COST_PER_CALL
        return await claude_client.classify(text)

    async def _route(self, text: str) -> ClassificationResult:
        if self.provider == "http":
            return await self._classify_http(text)

        elif self.provider == "ollama":
            return await self._classify_ollama(text)

        elif self.provider == "claude":
            return await self._classify_claude(text)

        else:  # auto
            if self.http is not None:
                return await self._classify_http(text)

            if await self.ollama.is_available():
                result = await self._classify_ollama(text)
                # A lone Ollama failure is counted once, by classify()
                if result.ok or self.claude is None:
                    return result
                if self.verbose:
                    logger.info(f"  Ollama failed: {result.error}; trying Claude")
                self.stats.errors += 1

            if self.claude is None:
                return ClassificationResult(
                    error="No classifier provider available", provider="auto"
                )
            return await self._classify_claude(text)

    async def classify(self, text: str) -> ClassificationResult:
        """
        Classify label text with the configured provider.

        Failures come back as a result with `error` set, never raised.
        """
        result = await self._route(text)
        self.stats.total_time_ms += result.elapsed_ms
        if not result.ok:
            self.stats.errors += 1
            logger.warning(f"Classification failed ({result.provider}): {result.error}")
        return result

    def get_stats(self) -> Dict[str, Any]:
        """Get usage statistics."""
        return {
            "provider": self.provider,
            "http_calls": self.stats.http_calls,
            "ollama_calls": self.stats.ollama_calls,
            "claude_calls": self.stats.claude_calls,
            "total_calls": self.get_call_count(),
            "total_cost_usd": round(self.stats.claude_cost_usd, 4),
            "total_time_ms": self.stats.total_time_ms,
            "errors": self.stats.errors,
        }

    def get_call_count(self) -> int:
        """Total call count across all providers."""
        return self.stats.http_calls + self.stats.ollama_calls + self.stats.claude_calls


# Singleton
_classifier_router: Optional[ClassifierRouter] = None


def get_classifier_router(config: Optional[LensConfig] = None) -> ClassifierRouter:
    """Get unified classifier router (singleton), configured from the environment."""
    global _classifier_router

    if _classifier_router is None:
        _classifier_router = ClassifierRouter.from_config(config or LensConfig.from_env())

    return _classifier_router


def reset_classifier_router():
    """Reset singleton (for testing)."""
    global _classifier_router
    _classifier_router = None

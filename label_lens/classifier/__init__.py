"""
Ingredient classifiers: flag undesirable ingredients in recognized label text.

Providers:
- HTTP analyze endpoint ({"text"} -> {"bad_ingredients"})
- Local model via Ollama - free
- Claude (Anthropic API) - best quality, costs money
- Auto mode - endpoint, then Ollama, then Claude

Usage:
    from label_lens.classifier import ClassifierRouter

    router = ClassifierRouter(provider="ollama")
    result = await router.classify(label_text)
"""

from label_lens.classifier.classifier_types import (
    ClassificationError,
    ClassificationResult,
    parse_classification,
)
from label_lens.classifier.http_classifier import HttpClassifier
from label_lens.classifier.ollama_classifier import OllamaClassifier
from label_lens.classifier.claude_classifier import ClaudeClassifier
from label_lens.classifier.classifier_router import (
    ClassifierRouter,
    ClassifierStats,
    get_classifier_router,
    reset_classifier_router,
)

__all__ = [
    "ClassificationError",
    "ClassificationResult",
    "parse_classification",
    "HttpClassifier",
    "OllamaClassifier",
    "ClaudeClassifier",
    "ClassifierRouter",
    "ClassifierStats",
    "get_classifier_router",
    "reset_classifier_router",
]

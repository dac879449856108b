"""Shared types and parsing for ingredient classifiers."""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SYSTEM_PROMPT = """You are a food safety expert. Analyze the messy OCR text from a food label.
Identify ingredients that are:
1. Sugars (sugar, syrup, dextrose, fructose, glucose, sucrose, cane).
2. Additives (Red 40, Blue 1, Yellow 5, Nitrates, Benzoate).

The text might have typos (e.g., "Suga r", "Hgh Fructose").
If you see something that LOOKS like a bad ingredient, flag it, copying
the text as it appears on the label.

Return ONLY a JSON object: {"bad_ingredients": ["...", "..."]}"""


class ClassificationError(RuntimeError):
    """The classifier could not produce a verdict."""


@dataclass
class ClassificationResult:
    """Outcome of one classifier call."""

    bad_ingredients: List[str] = field(default_factory=list)
    error: Optional[str] = None
    provider: str = "unknown"
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


def _clean_items(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def parse_classification(
    payload: Any, provider: str = "unknown", elapsed_ms: float = 0.0
) -> ClassificationResult:
    """
    Apply the {"bad_ingredients": [...]} / {"error": "..."} contract.

    An absent or empty list is a clean verdict, not an error.
    """
    if not isinstance(payload, dict):
        return ClassificationResult(
            error=f"Unexpected classifier payload: {type(payload).__name__}",
            provider=provider,
            elapsed_ms=elapsed_ms,
        )

    if payload.get("error"):
        return ClassificationResult(
            error=str(payload["error"]), provider=provider, elapsed_ms=elapsed_ms
        )

    if "parse_error" in payload:
        return ClassificationResult(
            error=f"Unparseable classifier reply: {payload['parse_error']}",
            provider=provider,
            elapsed_ms=elapsed_ms,
        )

    return ClassificationResult(
        bad_ingredients=_clean_items(payload.get("bad_ingredients")),
        provider=provider,
        elapsed_ms=elapsed_ms,
    )


def parse_json_response(text: str) -> Dict:
    """Parse JSON from a model reply (handles markdown wrappers)."""
    # Try direct parse
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Try extracting from markdown code block
    json_match = re.search(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL)
    if json_match:
        try:
            return json.loads(json_match.group(1))
        except json.JSONDecodeError:
            pass

    # Try bare JSON object
    json_match = re.search(r"\{.*\}", text, re.DOTALL)
    if json_match:
        try:
            return json.loads(json_match.group(0))
        except json.JSONDecodeError:
            pass

    return {"parse_error": text[:200]}

"""
Matcher: Find OCR tokens that correspond to flagged ingredient terms.

Uses loose containment on normalized text: a token hits when it is a
substring of a flagged term or a flagged term is a substring of it. OCR
splits phrases like "high fructose corn syrup" into words, while the
classifier may return either whole phrases or single words, so either side
can be the shorter string.
"""

import logging
import re
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from label_lens.schema import FlaggedTerm, MatchedAnnotation, RecognizedToken

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 60.0
DEFAULT_MIN_TOKEN_LENGTH = 3

_NON_LETTERS = re.compile(r"[^a-z]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")

TokenInput = Union[RecognizedToken, Mapping[str, Any]]
TermInput = Union[FlaggedTerm, str]


def normalize(text: str, keep_digits: bool = True) -> str:
    """Lower-case and strip everything but ASCII letters (and digits)."""
    pattern = _NON_ALNUM if keep_digits else _NON_LETTERS
    return pattern.sub("", text.lower())


def coerce_token(raw: TokenInput) -> Optional[RecognizedToken]:
    """Validate one token at the boundary; None if it is malformed."""
    if isinstance(raw, RecognizedToken):
        return raw
    if not isinstance(raw, Mapping):
        logger.warning(f"Skipping token of unexpected type {type(raw).__name__}")
        return None
    try:
        return RecognizedToken.model_validate(raw)
    except ValidationError as e:
        logger.warning(
            f"Skipping malformed token {raw.get('text')!r}: {e.error_count()} error(s)"
        )
        return None


def coerce_term(raw: TermInput) -> Optional[FlaggedTerm]:
    if isinstance(raw, FlaggedTerm):
        return raw
    if isinstance(raw, str):
        return FlaggedTerm(text=raw)
    logger.warning(f"Skipping flagged term of unexpected type {type(raw).__name__}")
    return None


def passes_confidence(token: RecognizedToken, min_confidence: float) -> bool:
    """Absent confidence counts as passing."""
    if token.confidence is None:
        return True
    return token.confidence >= min_confidence


def _prepare_terms(
    terms: Iterable[TermInput], keep_digits: bool
) -> List[Tuple[FlaggedTerm, str]]:
    prepared = []
    for raw in terms:
        term = coerce_term(raw)
        if term is None:
            continue
        normalized = normalize(term.text, keep_digits)
        # An empty needle is contained in every token
        if not normalized:
            continue
        prepared.append((term, normalized))
    return prepared


def find_term(
    token_text: str,
    prepared_terms: List[Tuple[FlaggedTerm, str]],
    min_token_length: int,
    keep_digits: bool = True,
) -> Optional[FlaggedTerm]:
    """Return the first term the token text matches, if any."""
    word = normalize(token_text, keep_digits)
    if len(word) <= min_token_length:
        return None

    for term, needle in prepared_terms:
        if word in needle or needle in word:
            return term
    return None


def match(
    tokens: Iterable[TokenInput],
    terms: Iterable[TermInput],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    min_token_length: int = DEFAULT_MIN_TOKEN_LENGTH,
    keep_digits: bool = True,
) -> List[MatchedAnnotation]:
    """
    Match recognized tokens against flagged terms.

    Args:
        tokens: OCR tokens in reading order (models or raw mappings)
        terms: Flagged terms from the classifier (models or strings)
        min_confidence: Tokens below this OCR confidence are never matched
        min_token_length: Normalized tokens must be strictly longer than this
        keep_digits: Keep digits during normalization ("Red 40" -> "red40")

    Returns:
        One annotation per matching token, in token order
    """
    prepared_terms = _prepare_terms(terms, keep_digits)
    if not prepared_terms:
        return []

    annotations = []
    skipped = 0

    for raw in tokens:
        token = coerce_token(raw)
        if token is None:
            skipped += 1
            continue

        if not passes_confidence(token, min_confidence):
            continue

        term = find_term(token.text, prepared_terms, min_token_length, keep_digits)
        if term is not None:
            annotations.append(MatchedAnnotation(source_token=token, matched_term=term))

    if skipped:
        logger.warning(f"Skipped {skipped} malformed token(s)")

    logger.debug(
        f"Matched {len(annotations)} token(s) against {len(prepared_terms)} term(s)"
    )
    return annotations

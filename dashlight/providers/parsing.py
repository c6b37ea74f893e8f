from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from dashlight.analyzers.vision_base import ClassificationCandidate
from dashlight.vocabulary import LABELS, resolve_label

logger = logging.getLogger(__name__)

# Documented default when the model omits confidence or sends a non-number.
DEFAULT_REMOTE_CONFIDENCE = 0.85

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_DECODER = json.JSONDecoder()


class RemoteAnswer(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    label: StrictStr = Field(..., min_length=1)
    confidence: Any = None


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` decoration that chat models like to wrap JSON in."""
    return _FENCE_RE.sub("", text or "").strip()


def extract_json_object(text: str) -> Optional[str]:
    """
    Returns the first complete JSON object embedded in a model output.

    Each "{" is tried in turn, so stray braces in surrounding prose do not
    swallow a valid answer.
    """
    if not text:
        return None
    start = text.find("{")
    while start != -1:
        try:
            obj, end = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            obj = None
        if isinstance(obj, dict):
            return text[start:end]
        start = text.find("{", start + 1)
    return None


def _coerce_confidence(value: Any) -> float:
    # bool is an int subclass; true/false is not a confidence
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_REMOTE_CONFIDENCE
    conf = float(value)
    if conf != conf:  # NaN
        return DEFAULT_REMOTE_CONFIDENCE
    return min(1.0, max(0.0, conf))


def parse_identify_answer(text: str, vocabulary: Sequence[str] = LABELS) -> ClassificationCandidate:
    """
    Turn the assistant's free text into a single candidate.

    Raises ValueError when no usable JSON object with a label is present.
    Labels that cannot be matched to the vocabulary are kept, marked resolved=False.
    """
    cleaned = strip_code_fences(text)
    raw = extract_json_object(cleaned)
    if raw is None:
        raise ValueError("No JSON object found in model output")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e

    try:
        answer = RemoteAnswer.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"JSON does not match schema: {e}") from e

    label, resolved = resolve_label(answer.label, vocabulary)
    if not resolved:
        logger.info("remote_label_unresolved label=%r", label)

    return ClassificationCandidate(
        label=label,
        confidence=_coerce_confidence(answer.confidence),
        resolved=resolved,
    )

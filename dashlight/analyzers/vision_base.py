from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Literal, Protocol, Tuple

import numpy as np

from dashlight.vocabulary import sort_key


OutputKind = Literal["logits", "probabilities"]


@dataclass(frozen=True)
class ClassificationCandidate:
    """
    One ranked guess.

    label is a vocabulary entry unless resolved is False, which only happens
    for remote answers that could not be matched to the vocabulary.
    """
    label: str
    confidence: float
    resolved: bool = True


def rank_candidates(candidates: Iterable[ClassificationCandidate], limit: int = 3) -> List[ClassificationCandidate]:
    """Descending confidence; ties broken by vocabulary position."""
    ordered = sorted(candidates, key=lambda c: (-c.confidence, sort_key(c.label)))
    return ordered[:limit]


class InferenceBackend(Protocol):
    """
    Contract for the on-device model.

    infer() receives pixels already sized to input_size (float32, HxWx3, [0,1])
    and returns one score per vocabulary entry, either as raw logits or as
    normalized probabilities depending on output_kind.
    """
    model_name: str
    output_kind: OutputKind
    input_size: Tuple[int, int]

    def infer(self, pixels: np.ndarray) -> np.ndarray:
        ...

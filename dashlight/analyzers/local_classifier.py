from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from dashlight.analyzers.vision_base import ClassificationCandidate, InferenceBackend, rank_candidates
from dashlight.errors import InferenceError
from dashlight.vocabulary import LABELS

logger = logging.getLogger(__name__)

TOP_K = 3


def softmax(logits: np.ndarray) -> np.ndarray:
    """Numerically stable softmax over a 1-D vector."""
    x = np.asarray(logits, dtype=np.float64)
    shifted = np.exp(x - np.max(x))
    return shifted / shifted.sum()


class LocalClassifier:
    """
    Wraps an inference backend and turns its output vector into ranked candidates.

    The backend's output index i must correspond to vocabulary[i]; a length
    mismatch is an InferenceError rather than a silent truncation.
    """

    def __init__(self, backend: InferenceBackend, vocabulary: Sequence[str] = LABELS, top_k: int = TOP_K):
        self.backend = backend
        self.vocabulary = tuple(vocabulary)
        self.top_k = top_k

    @property
    def model_name(self) -> str:
        return getattr(self.backend, "model_name", "unknown")

    def classify(self, pixels: np.ndarray) -> List[ClassificationCandidate]:
        try:
            raw = self.backend.infer(pixels)
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"backend failure: {type(e).__name__}: {e}") from e

        scores = self._to_scores(raw)

        candidates = [
            ClassificationCandidate(label=self.vocabulary[i], confidence=float(p))
            for i, p in enumerate(scores)
        ]
        ranked = rank_candidates(candidates, limit=self.top_k)

        logger.debug(
            "local_classify model=%s top1=%s conf=%.3f",
            self.model_name,
            ranked[0].label if ranked else "n/a",
            ranked[0].confidence if ranked else 0.0,
        )
        return ranked

    def _to_scores(self, raw) -> np.ndarray:
        try:
            vec = np.asarray(raw, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InferenceError(f"backend output is not numeric: {e}") from e

        vec = np.squeeze(vec)
        if vec.ndim != 1:
            raise InferenceError(f"expected a 1-D score vector, got shape {tuple(np.shape(raw))}")
        if vec.shape[0] != len(self.vocabulary):
            raise InferenceError(
                f"score vector length {vec.shape[0]} does not match vocabulary size {len(self.vocabulary)}"
            )
        if not np.all(np.isfinite(vec)):
            raise InferenceError("score vector contains non-finite values")

        kind = getattr(self.backend, "output_kind", "logits")
        if kind == "logits":
            return softmax(vec)
        return np.clip(vec, 0.0, 1.0)

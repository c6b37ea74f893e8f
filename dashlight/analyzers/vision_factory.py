from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np

from dashlight.config import settings
from dashlight.errors import InferenceError
from dashlight.vocabulary import LABELS


# --------
# NoOp backend (no torch import)
# --------

@dataclass(frozen=True)
class NoOpInferenceBackend:
    """
    Lightweight backend used for integration tests and environments without torch.

    Always returns flat logits, so every label scores 1/len(vocabulary) and
    the pipeline's low-confidence path is exercised.
    """
    model_name: str = "noop-vision"
    output_kind: str = "logits"
    input_size: Tuple[int, int] = (224, 224)

    def infer(self, pixels: Any) -> np.ndarray:
        return np.zeros(len(LABELS), dtype=np.float32)


@dataclass(frozen=True)
class UnavailableInferenceBackend:
    """
    Stands in for a backend that could not be built (missing weights, torch not installed).

    Every inference fails with InferenceError, so requests still end with an
    outcome that says why instead of an HTTP 500.
    """
    reason: str
    model_name: str = "unavailable"
    output_kind: str = "logits"
    input_size: Tuple[int, int] = (224, 224)

    def infer(self, pixels: Any) -> np.ndarray:
        raise InferenceError(f"model unavailable: {self.reason}")


def create_inference_backend(engine: str | None = None) -> Any:
    """
    Factory for the local inference backend.

    Critical rule:
    - Do NOT import torch-based implementations unless the selected engine needs them.
    """
    name = (engine or settings.vision_engine or "mobilenet").strip().lower()

    if name in {"noop", "none", "disabled"}:
        return NoOpInferenceBackend()

    if name in {"mobilenet", "mobilenet_v2", "torch"}:
        # Lazy import to avoid importing torch in test environments
        from dashlight.analyzers.vision_mobilenet import MobileNetV2Backend

        return MobileNetV2Backend(
            weights_path=settings.model_path,
            output_kind=settings.model_output,
        )

    raise ValueError(f"Unsupported vision engine: {name}")

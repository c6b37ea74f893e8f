from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Sequence, Tuple

import httpx
from PIL import Image

from dashlight.analyzers.local_classifier import LocalClassifier
from dashlight.analyzers.runner import run_in_worker
from dashlight.analyzers.vision_base import ClassificationCandidate
from dashlight.errors import InferenceError, RemoteError
from dashlight.observability.metrics import (
    CLASSIFICATIONS_TOTAL,
    LOCAL_INFERENCE_SECONDS,
    LOCAL_REQUESTS_TOTAL,
    REMOTE_REQUEST_SECONDS,
    REMOTE_REQUESTS_TOTAL,
)
from dashlight.preprocessing.image_preprocess import prepare_remote_image, to_model_input
from dashlight.providers.base import ProviderConfig
from dashlight.providers.client import identify
from dashlight.providers.registry import get_provider
from dashlight.vocabulary import LABELS

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.70

Provenance = Literal["local", "remote"]

RemoteIdentify = Callable[..., Awaitable[Optional[ClassificationCandidate]]]


class PipelineState(str, Enum):
    IDLE = "idle"
    LOCAL_INFERENCE = "local_inference"
    DECISION = "decision"
    REMOTE_INFERENCE = "remote_inference"
    MERGE = "merge"
    DONE = "done"


@dataclass(frozen=True)
class ClassificationOutcome:
    """
    Final answer for one classification request.

    Always produced, even when nothing could be classified: candidates may be
    empty, in which case message says why.
    """
    candidates: Tuple[ClassificationCandidate, ...]
    provenance: Provenance
    message: Optional[str] = None
    provider: Optional[str] = None  # provider consulted, if the request escalated

    # Optional meta for debugging/observability
    trace: Tuple[PipelineState, ...] = field(default=(), compare=False)
    duration_ms: Optional[int] = field(default=None, compare=False)

    @property
    def top(self) -> Optional[ClassificationCandidate]:
        return self.candidates[0] if self.candidates else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provenance": self.provenance,
            "provider": self.provider,
            "message": self.message,
            "candidates": [
                {"label": c.label, "confidence": float(c.confidence), "resolved": c.resolved}
                for c in self.candidates
            ],
        }


class ClassificationPipeline:
    """
    Local-first classification with a single optional cloud escalation.

    IDLE -> LOCAL_INFERENCE -> DECISION -> DONE
                                        -> REMOTE_INFERENCE -> MERGE -> DONE
                                                            -> DONE (local result kept)

    Configuration that may change between requests (provider, key) is passed
    into run(); the pipeline itself holds only read-only collaborators.
    """

    def __init__(
        self,
        classifier: LocalClassifier,
        *,
        identify_fn: RemoteIdentify = identify,
        threshold: float = CONFIDENCE_THRESHOLD,
        vocabulary: Sequence[str] = LABELS,
        remote_max_edge: int = 512,
        remote_jpeg_quality: int = 80,
        remote_timeout_seconds: float = 20.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.classifier = classifier
        self.identify_fn = identify_fn
        self.threshold = threshold
        self.vocabulary = tuple(vocabulary)
        self.remote_max_edge = remote_max_edge
        self.remote_jpeg_quality = remote_jpeg_quality
        self.remote_timeout_seconds = remote_timeout_seconds
        self.http_client = http_client

    async def run(self, image: Image.Image, provider_config: Optional[ProviderConfig] = None) -> ClassificationOutcome:
        t0 = time.perf_counter()
        trace: List[PipelineState] = [PipelineState.IDLE]

        def done(outcome: ClassificationOutcome, escalated: bool) -> ClassificationOutcome:
            trace.append(PipelineState.DONE)
            duration_ms = int((time.perf_counter() - t0) * 1000)
            CLASSIFICATIONS_TOTAL.labels(provenance=outcome.provenance, escalated=str(escalated).lower()).inc()
            logger.info(
                "classify_done provenance=%s top1=%s conf=%.3f escalated=%s duration_ms=%d",
                outcome.provenance,
                outcome.top.label if outcome.top else "n/a",
                outcome.top.confidence if outcome.top else 0.0,
                escalated,
                duration_ms,
            )
            return ClassificationOutcome(
                candidates=outcome.candidates,
                provenance=outcome.provenance,
                message=outcome.message,
                provider=outcome.provider,
                trace=tuple(trace),
                duration_ms=duration_ms,
            )

        # --- LOCAL_INFERENCE ---
        trace.append(PipelineState.LOCAL_INFERENCE)
        try:
            local_candidates = await self._run_local(image)
        except InferenceError as e:
            # No remote attempt: a failed local pass says nothing useful about the image.
            return done(
                ClassificationOutcome(
                    candidates=(),
                    provenance="local",
                    message=f"On-device classification failed: {e}",
                ),
                escalated=False,
            )

        local = ClassificationOutcome(candidates=tuple(local_candidates), provenance="local")

        # --- DECISION ---
        trace.append(PipelineState.DECISION)
        top = local.top.confidence if local.top else 0.0
        has_key = provider_config is not None and provider_config.has_credential

        if top >= self.threshold or not has_key:
            message = None
            if top < self.threshold:
                message = f"Low confidence ({int(top * 100)}%). Add an API key for better results."
            return done(
                ClassificationOutcome(candidates=local.candidates, provenance="local", message=message),
                escalated=False,
            )

        # --- REMOTE_INFERENCE ---
        trace.append(PipelineState.REMOTE_INFERENCE)
        profile = get_provider(provider_config.provider)
        logger.info(
            "classify_escalate provider=%s local_conf=%.3f threshold=%.2f",
            profile.id.value,
            top,
            self.threshold,
        )

        candidate = await self._run_remote(image, provider_config)
        if candidate is None:
            return done(
                ClassificationOutcome(
                    candidates=local.candidates,
                    provenance="local",
                    message=f"{profile.display_name} fallback failed. Showing on-device result.",
                    provider=profile.id.value,
                ),
                escalated=True,
            )

        # --- MERGE ---
        trace.append(PipelineState.MERGE)
        return done(
            ClassificationOutcome(candidates=(candidate,), provenance="remote", provider=profile.id.value),
            escalated=True,
        )

    async def _run_local(self, image: Image.Image) -> List[ClassificationCandidate]:
        model_label = self.classifier.model_name
        input_size = tuple(getattr(self.classifier.backend, "input_size", (224, 224)))

        def _classify() -> List[ClassificationCandidate]:
            return self.classifier.classify(to_model_input(image, input_size))

        try:
            candidates, duration_s = await run_in_worker(_classify)
        except InferenceError as e:
            LOCAL_REQUESTS_TOTAL.labels(result="failed", model=model_label).inc()
            logger.warning("local_inference_failed model=%s error=%s", model_label, e)
            raise
        except Exception as e:
            LOCAL_REQUESTS_TOTAL.labels(result="failed", model=model_label).inc()
            logger.exception("local_inference_failed model=%s", model_label)
            raise InferenceError(f"{type(e).__name__}: {e}") from e

        LOCAL_REQUESTS_TOTAL.labels(result="ok", model=model_label).inc()
        LOCAL_INFERENCE_SECONDS.labels(model=model_label).observe(duration_s)
        return candidates

    async def _run_remote(self, image: Image.Image, config: ProviderConfig) -> Optional[ClassificationCandidate]:
        """Single attempt. Returns None on any failure so the caller keeps the local result."""
        provider = config.provider.value
        t0 = time.perf_counter()

        try:
            image_bytes, _ = await run_in_worker(
                prepare_remote_image,
                image,
                max_edge=self.remote_max_edge,
                quality=self.remote_jpeg_quality,
            )
            candidate = await self.identify_fn(
                image_bytes,
                self.vocabulary,
                config=config,
                client=self.http_client,
                timeout=self.remote_timeout_seconds,
            )
        except RemoteError as e:
            REMOTE_REQUESTS_TOTAL.labels(provider=provider, result=e.kind).inc()
            logger.warning("remote_fallback_failed provider=%s kind=%s error=%s", provider, e.kind, e)
            return None
        except Exception:
            REMOTE_REQUESTS_TOTAL.labels(provider=provider, result="failed").inc()
            logger.exception("remote_fallback_failed provider=%s kind=unexpected", provider)
            return None
        finally:
            REMOTE_REQUEST_SECONDS.labels(provider=provider).observe(time.perf_counter() - t0)

        if candidate is None:
            REMOTE_REQUESTS_TOTAL.labels(provider=provider, result="empty").inc()
            logger.warning("remote_fallback_empty provider=%s", provider)
            return None

        REMOTE_REQUESTS_TOTAL.labels(provider=provider, result="ok").inc()
        return candidate

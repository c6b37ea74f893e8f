import asyncio
import io
import threading

import numpy as np
import pytest
from PIL import Image
from prometheus_client import REGISTRY

from dashlight.analyzers.local_classifier import LocalClassifier
from dashlight.analyzers.vision_base import ClassificationCandidate
from dashlight.errors import RemoteError
from dashlight.pipelines.classify_pipeline import ClassificationPipeline, PipelineState
from dashlight.providers.base import ProviderConfig, ProviderId
from dashlight.vocabulary import LABELS, index_of


class _FakeBackend:
    def __init__(self, output, output_kind="logits"):
        self.output = output
        self.output_kind = output_kind
        self.model_name = "fake-backend"
        self.input_size = (64, 64)

    def infer(self, pixels):
        if isinstance(self.output, Exception):
            raise self.output
        return self.output


class _FakeIdentify:
    """Stands in for providers.client.identify; records every call."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def __call__(self, image_bytes, vocabulary, *, config, client=None, timeout=20.0):
        self.calls.append({"image_bytes": image_bytes, "vocabulary": vocabulary, "config": config, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.result


def _confident_logits() -> np.ndarray:
    vec = np.zeros(len(LABELS), dtype=np.float32)
    vec[index_of("check_engine")] = 10.0
    return vec


def _flat_logits() -> np.ndarray:
    return np.zeros(len(LABELS), dtype=np.float32)


def _image(w: int = 640, h: int = 480) -> Image.Image:
    return Image.new("RGB", (w, h), color=(30, 30, 30))


def _pipeline(output, identify_fn, **kwargs) -> ClassificationPipeline:
    return ClassificationPipeline(LocalClassifier(_FakeBackend(output)), identify_fn=identify_fn, **kwargs)


def _key(provider=ProviderId.CLAUDE) -> ProviderConfig:
    return ProviderConfig(provider=provider, api_key="sk-test")


REMOTE_ANSWER = ClassificationCandidate(label="oil_pressure", confidence=0.93)


def test_high_confidence_never_calls_remote():
    remote = _FakeIdentify(result=REMOTE_ANSWER)
    pipe = _pipeline(_confident_logits(), remote)

    out = asyncio.run(pipe.run(_image(), _key()))

    assert remote.calls == []
    assert out.provenance == "local"
    assert out.message is None
    assert out.provider is None
    assert out.top.label == "check_engine"
    assert out.top.confidence >= 0.70
    assert len(out.candidates) == 3
    assert out.trace == (
        PipelineState.IDLE,
        PipelineState.LOCAL_INFERENCE,
        PipelineState.DECISION,
        PipelineState.DONE,
    )


def test_low_confidence_without_key_returns_local_with_advisory():
    remote = _FakeIdentify(result=REMOTE_ANSWER)
    pipe = _pipeline(_flat_logits(), remote)

    out = asyncio.run(pipe.run(_image(), ProviderConfig(provider=ProviderId.CLAUDE)))

    assert remote.calls == []
    assert out.provenance == "local"
    assert out.message == "Low confidence (2%). Add an API key for better results."
    assert [c.label for c in out.candidates] == ["abs", "adaptive_cruise", "airbag"]


def test_missing_provider_config_is_treated_as_no_key():
    remote = _FakeIdentify(result=REMOTE_ANSWER)
    out = asyncio.run(_pipeline(_flat_logits(), remote).run(_image()))

    assert remote.calls == []
    assert out.message.startswith("Low confidence")


def test_threshold_is_inclusive():
    probs = np.full(len(LABELS), 0.30 / (len(LABELS) - 1))
    probs[index_of("fuel")] = 0.70
    remote = _FakeIdentify(result=REMOTE_ANSWER)
    pipe = ClassificationPipeline(
        LocalClassifier(_FakeBackend(probs, output_kind="probabilities")),
        identify_fn=remote,
    )

    out = asyncio.run(pipe.run(_image(), _key()))

    assert remote.calls == []
    assert out.top.label == "fuel"
    assert out.message is None


def test_low_confidence_with_key_escalates_once_and_merges():
    remote = _FakeIdentify(result=REMOTE_ANSWER)
    pipe = _pipeline(_flat_logits(), remote, remote_timeout_seconds=7.5)

    out = asyncio.run(pipe.run(_image(), _key(ProviderId.GEMINI)))

    assert len(remote.calls) == 1
    call = remote.calls[0]
    assert call["config"].provider == ProviderId.GEMINI
    assert call["vocabulary"] == LABELS
    assert call["timeout"] == 7.5

    assert out.provenance == "remote"
    assert out.provider == "gemini"
    assert out.candidates == (REMOTE_ANSWER,)
    assert out.message is None
    assert PipelineState.REMOTE_INFERENCE in out.trace
    assert PipelineState.MERGE in out.trace


def test_remote_payload_is_jpeg_bounded_to_max_edge():
    remote = _FakeIdentify(result=REMOTE_ANSWER)
    pipe = _pipeline(_flat_logits(), remote)

    asyncio.run(pipe.run(_image(2000, 1000), _key()))

    sent = Image.open(io.BytesIO(remote.calls[0]["image_bytes"]))
    assert sent.format == "JPEG"
    assert sent.size == (512, 256)


@pytest.mark.parametrize(
    "error",
    [
        RemoteError("network", "timed out"),
        RemoteError("auth", "HTTP 401", status_code=401),
        RemoteError("parse", "no JSON"),
        RuntimeError("unexpected"),
    ],
)
def test_remote_failure_keeps_local_result(error):
    remote = _FakeIdentify(error=error)
    pipe = _pipeline(_flat_logits(), remote)

    out = asyncio.run(pipe.run(_image(), _key()))

    assert len(remote.calls) == 1
    assert out.provenance == "local"
    assert out.provider == "claude"
    assert out.message == "Claude (Anthropic) fallback failed. Showing on-device result."
    assert [c.label for c in out.candidates] == ["abs", "adaptive_cruise", "airbag"]
    assert PipelineState.MERGE not in out.trace


def test_empty_remote_answer_keeps_local_result():
    remote = _FakeIdentify(result=None)
    pipe = _pipeline(_flat_logits(), remote)

    out = asyncio.run(pipe.run(_image(), _key(ProviderId.GPT4O)))

    assert out.provenance == "local"
    assert out.message == "GPT-4o (OpenAI) fallback failed. Showing on-device result."


def test_local_failure_returns_empty_outcome_without_escalating():
    remote = _FakeIdentify(result=REMOTE_ANSWER)
    pipe = _pipeline(RuntimeError("weights corrupted"), remote)

    out = asyncio.run(pipe.run(_image(), _key()))

    assert remote.calls == []
    assert out.candidates == ()
    assert out.top is None
    assert out.provenance == "local"
    assert out.message.startswith("On-device classification failed")
    assert out.trace[-1] == PipelineState.DONE


def test_malformed_local_output_is_a_local_failure():
    remote = _FakeIdentify(result=REMOTE_ANSWER)
    out = asyncio.run(_pipeline(np.zeros(5), remote).run(_image(), _key()))

    assert out.candidates == ()
    assert remote.calls == []


def test_unresolved_remote_label_is_passed_through():
    answer = ClassificationCandidate(label="spaceship", confidence=0.85, resolved=False)
    out = asyncio.run(_pipeline(_flat_logits(), _FakeIdentify(result=answer)).run(_image(), _key()))

    assert out.provenance == "remote"
    assert out.top.resolved is False
    assert out.to_dict()["candidates"] == [{"label": "spaceship", "confidence": 0.85, "resolved": False}]


def test_outcomes_compare_on_content_not_timing():
    remote = _FakeIdentify()
    pipe = _pipeline(_confident_logits(), remote)

    a = asyncio.run(pipe.run(_image()))
    b = asyncio.run(pipe.run(_image()))

    assert a == b
    assert a.duration_ms is not None


def _sample(name, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class _HangingIdentify:
    """Provider call that never answers until cancelled."""

    def __init__(self):
        self.started = None
        self.calls = 0

    async def __call__(self, image_bytes, vocabulary, *, config, client=None, timeout=20.0):
        self.calls += 1
        self.started.set()
        await asyncio.sleep(3600)


class _BlockingBackend:
    model_name = "blocking-backend"
    output_kind = "logits"
    input_size = (64, 64)

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()

    def infer(self, pixels):
        self.entered.set()
        self.release.wait(timeout=10)
        return _flat_logits()


def test_cancel_during_remote_call_propagates_and_records_no_outcome():
    remote = _HangingIdentify()
    pipe = _pipeline(_flat_logits(), remote)

    ok_before = _sample("remote_requests_total", provider="claude", result="ok")
    remote_before = _sample("classifications_total", provenance="remote", escalated="true")
    fallback_before = _sample("classifications_total", provenance="local", escalated="true")

    async def _cancel_mid_request():
        remote.started = asyncio.Event()
        task = asyncio.create_task(pipe.run(_image(), _key()))
        await remote.started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_cancel_mid_request())

    assert remote.calls == 1
    assert _sample("remote_requests_total", provider="claude", result="ok") == ok_before
    assert _sample("classifications_total", provenance="remote", escalated="true") == remote_before
    assert _sample("classifications_total", provenance="local", escalated="true") == fallback_before


def test_cancel_during_local_inference_propagates_and_skips_remote():
    backend = _BlockingBackend()
    remote = _FakeIdentify(result=REMOTE_ANSWER)
    pipe = ClassificationPipeline(LocalClassifier(backend), identify_fn=remote)

    local_before = _sample("classifications_total", provenance="local", escalated="false")

    async def _cancel_mid_inference():
        task = asyncio.create_task(pipe.run(_image(), _key()))
        try:
            while not backend.entered.is_set():
                await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            backend.release.set()
            # let the abandoned worker thread finish before the loop closes
            await asyncio.sleep(0.05)

    asyncio.run(_cancel_mid_inference())

    assert remote.calls == []
    assert REGISTRY.get_sample_value(
        "local_inference_requests_total", {"result": "ok", "model": "blocking-backend"}
    ) is None
    assert _sample("classifications_total", provenance="local", escalated="false") == local_before

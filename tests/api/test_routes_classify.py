import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from prometheus_client import REGISTRY

from dashlight.analyzers.local_classifier import LocalClassifier
from dashlight.analyzers.vision_base import ClassificationCandidate
from dashlight.analyzers.vision_factory import NoOpInferenceBackend
from dashlight.api.routes_classify import get_pipeline
from dashlight.config import settings
from dashlight.main import app
from dashlight.pipelines.classify_pipeline import ClassificationPipeline
from dashlight.providers.base import ProviderId
from dashlight.vocabulary import LABELS


class _FakeIdentify:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def __call__(self, image_bytes, vocabulary, *, config, client=None, timeout=20.0):
        self.calls.append(config)
        return self.result


def _make_png_bytes(w: int = 64, h: int = 48) -> bytes:
    img = Image.new("RGB", (w, h), color=(20, 20, 20))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def remote():
    return _FakeIdentify(ClassificationCandidate(label="oil_pressure", confidence=0.9))


@pytest.fixture()
def client(remote, monkeypatch):
    monkeypatch.setattr(settings, "provider", "claude")
    monkeypatch.setattr(settings, "provider_api_key", "")
    monkeypatch.setattr(settings, "provider_endpoint", None)

    # noop backend scores every label 1/36, so every request is low-confidence
    pipeline = ClassificationPipeline(LocalClassifier(NoOpInferenceBackend()), identify_fn=remote)
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


def _post_classify(client, *, data=None, headers=None, png=None):
    files = {"file": ("dash.png", png or _make_png_bytes(), "image/png")}
    return client.post("/classify", files=files, data=data or {}, headers=headers or {})


def test_classify_without_key_returns_local_candidates_with_advisory(client, remote):
    resp = _post_classify(client, headers={"X-Request-Id": "cls-1"})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-Id") == "cls-1"

    body = resp.json()
    assert body["provenance"] == "local"
    assert body["provider"] is None
    assert body["message"] == "Low confidence (2%). Add an API key for better results."
    assert [c["label"] for c in body["candidates"]] == ["abs", "adaptive_cruise", "airbag"]
    assert body["candidates"][0]["info"]["display_name"] == "ABS"
    assert body["crop"] == {"applied": False, "box": None}
    assert body["meta"]["trace"][0] == "idle"
    assert body["meta"]["trace"][-1] == "done"
    assert remote.calls == []


def test_classify_with_header_key_escalates_to_provider(client, remote):
    resp = _post_classify(client, headers={"X-Provider-Key": "sk-header"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["provenance"] == "remote"
    assert body["provider"] == "claude"
    assert body["message"] is None
    assert len(body["candidates"]) == 1
    top = body["candidates"][0]
    assert top["label"] == "oil_pressure"
    assert top["resolved"] is True
    assert top["info"]["urgency"] == "critical"

    assert len(remote.calls) == 1
    assert remote.calls[0].api_key == "sk-header"


def test_configured_key_is_used_for_configured_provider(client, remote, monkeypatch):
    monkeypatch.setattr(settings, "provider_api_key", "sk-env")

    resp = _post_classify(client)

    assert resp.json()["provenance"] == "remote"
    assert remote.calls[0].provider == ProviderId.CLAUDE
    assert remote.calls[0].api_key == "sk-env"


def test_configured_key_is_not_sent_to_another_provider(client, remote, monkeypatch):
    monkeypatch.setattr(settings, "provider_api_key", "sk-env")

    resp = _post_classify(client, data={"provider": "gemini"})

    body = resp.json()
    assert body["provenance"] == "local"
    assert body["message"].startswith("Low confidence")
    assert remote.calls == []


def test_unresolved_remote_label_gets_default_info(client, remote):
    remote.result = ClassificationCandidate(label="spaceship", confidence=0.85, resolved=False)

    body = _post_classify(client, headers={"X-Provider-Key": "k"}).json()

    top = body["candidates"][0]
    assert top["resolved"] is False
    assert top["info"]["short_description"] == "Unrecognized dashboard symbol."
    assert top["info"]["urgency"] == "warning"


def test_classify_crops_to_guide_when_viewport_given(client):
    resp = _post_classify(
        client,
        png=_make_png_bytes(1008, 756),
        data={"viewport_width": "390", "viewport_height": "844"},
    )

    assert resp.status_code == 200
    assert resp.json()["crop"] == {"applied": True, "box": [375, 213, 633, 472]}


def test_invalid_provider_returns_400_and_error_shape(client):
    resp = _post_classify(client, data={"provider": "llama"}, headers={"X-Request-Id": "cls-bad-provider"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "invalid_parameters"
    assert body["error"]["request_id"] == "cls-bad-provider"


def test_invalid_fill_mode_returns_400(client):
    resp = _post_classify(client, data={"viewport_width": "390", "viewport_height": "844", "fill_mode": "stretch"})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_parameters"


def test_unsupported_file_type_returns_400(client):
    files = {"file": ("x.txt", b"hello", "text/plain")}
    resp = client.post("/classify", files=files, headers={"X-Request-Id": "cls-badfile"})

    assert resp.status_code == 400
    assert resp.headers.get("X-Request-Id") == "cls-badfile"
    assert resp.json()["error"]["code"] == "unsupported_file_type"


def test_missing_file_returns_422_validation_error(client):
    resp = client.post("/classify", data={"provider": "claude"})

    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"


def test_crop_endpoint_matches_reference_scenario(client):
    payload = {"source_width": 4032, "source_height": 3024, "viewport_width": 390, "viewport_height": 844}

    resp = client.post("/crop", json=payload)

    assert resp.status_code == 200
    assert resp.json() == {"left": 1500, "top": 852, "right": 2532, "bottom": 1885, "width": 1032, "height": 1033}


def test_crop_endpoint_applies_orientation(client):
    payload = {
        "source_width": 4032,
        "source_height": 3024,
        "orientation": 6,
        "viewport_width": 390,
        "viewport_height": 844,
    }

    body = client.post("/crop", json=payload).json()

    assert (body["left"], body["top"], body["right"], body["bottom"]) == (824, 1136, 2200, 2513)


def test_crop_endpoint_with_custom_guide_and_no_padding(client):
    payload = {
        "source_width": 4000,
        "source_height": 3000,
        "viewport_width": 400,
        "viewport_height": 300,
        "guide": {"x": 100, "y": 100, "width": 100, "height": 100},
        "padding": 0.0,
    }

    body = client.post("/crop", json=payload).json()

    assert (body["left"], body["top"], body["right"], body["bottom"]) == (1000, 1000, 2000, 2000)


def test_crop_endpoint_degenerate_input_returns_422(client):
    payload = {"source_width": 0, "source_height": 3024, "viewport_width": 390, "viewport_height": 844}

    resp = client.post("/crop", json=payload, headers={"X-Request-Id": "crop-bad"})

    assert resp.status_code == 422
    body = resp.json()
    assert body["error"]["code"] == "degenerate_crop"
    assert body["error"]["request_id"] == "crop-bad"


def test_crop_endpoint_rejects_bad_orientation(client):
    payload = {"source_width": 10, "source_height": 10, "orientation": 9, "viewport_width": 1, "viewport_height": 1}

    resp = client.post("/crop", json=payload)

    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"


def test_labels_lists_vocabulary_in_order(client):
    resp = client.get("/labels")

    assert resp.status_code == 200
    labels = resp.json()["labels"]
    assert [entry["id"] for entry in labels] == list(LABELS)
    assert all(entry["urgency"] in {"critical", "warning", "info"} for entry in labels)


def test_health_and_metrics(client):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "ok"

    _post_classify(client)
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "classifications_total" in metrics.text
    assert "http_requests_total" in metrics.text


def test_request_id_is_generated_when_absent(client):
    resp = client.get("/health")
    assert resp.headers.get("X-Request-Id")


def test_classify_still_answers_when_model_fails_to_load(monkeypatch):
    from dashlight.api import routes_classify

    def _missing_weights(engine=None):
        raise FileNotFoundError("Model weights not found: models/dashboard_mobilenet_v2.pt")

    monkeypatch.setattr(routes_classify, "create_inference_backend", _missing_weights)
    monkeypatch.setattr(settings, "provider_api_key", "")
    get_pipeline.cache_clear()
    try:
        resp = _post_classify(TestClient(app), headers={"X-Request-Id": "cls-no-model"})
    finally:
        get_pipeline.cache_clear()

    assert resp.status_code == 200
    body = resp.json()
    assert body["candidates"] == []
    assert body["provenance"] == "local"
    assert body["message"].startswith("On-device classification failed")
    assert "Model weights not found" in body["message"]
    assert body["meta"]["trace"][-1] == "done"


def test_request_metric_is_labelled_by_route_template(client):
    def _count(path, status):
        labels = {"path": path, "method": "GET", "status": status}
        return REGISTRY.get_sample_value("http_requests_total", labels) or 0.0

    unmatched_before = _count("unmatched", "404")
    labels_before = _count("/labels", "200")

    assert client.get("/no/such/page-8731").status_code == 404
    assert client.get("/labels").status_code == 200

    assert _count("unmatched", "404") == unmatched_before + 1
    assert _count("/labels", "200") == labels_before + 1
    assert REGISTRY.get_sample_value(
        "http_requests_total", {"path": "/no/such/page-8731", "method": "GET", "status": "404"}
    ) is None

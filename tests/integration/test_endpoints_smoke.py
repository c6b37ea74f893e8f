import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from dashlight.api.routes_classify import get_pipeline
from dashlight.config import settings
from dashlight.main import app


def _make_jpeg_bytes(w: int = 320, h: int = 240) -> bytes:
    img = Image.new("RGB", (w, h), color=(240, 180, 0))
    buf = io.BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture()
def client(monkeypatch):
    """
    Real dependency wiring with the noop engine, so torch is never imported.
    get_pipeline is cached per process; clear it around the test so settings take effect.
    """
    monkeypatch.setattr(settings, "vision_engine", "noop")
    monkeypatch.setattr(settings, "provider_api_key", "")
    get_pipeline.cache_clear()
    yield TestClient(app)
    get_pipeline.cache_clear()


def test_smoke_classify_returns_200_and_contract_shape(client):
    files = {"file": ("dash.jpg", _make_jpeg_bytes(), "image/jpeg")}
    data = {"viewport_width": "390", "viewport_height": "844"}

    resp = client.post("/classify", files=files, data=data, headers={"X-Request-Id": "it-classify-1"})
    assert resp.status_code == 200
    assert resp.headers.get("X-Request-Id") == "it-classify-1"

    body = resp.json()
    for key in ("provenance", "provider", "message", "candidates", "crop", "meta"):
        assert key in body

    assert body["provenance"] == "local"
    assert len(body["candidates"]) == 3
    for cand in body["candidates"]:
        assert 0.0 <= cand["confidence"] <= 1.0
        assert set(cand["info"]) >= {"id", "display_name", "urgency", "what_to_do"}
    assert body["crop"]["applied"] is True


def test_smoke_health_reports_engine(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["vision_engine"] == "noop"


def test_smoke_corrupted_upload_returns_422_error_shape(client):
    files = {"file": ("dash.jpg", b"definitely-not-a-jpeg", "image/jpeg")}

    resp = client.post("/classify", files=files, headers={"X-Request-Id": "it-corrupt-1"})
    assert resp.status_code == 422
    assert resp.headers.get("X-Request-Id") == "it-corrupt-1"

    body = resp.json()
    assert body["error"]["code"] == "unprocessable_input"
    assert body["error"]["request_id"] == "it-corrupt-1"


def test_smoke_oversized_upload_returns_413(client, monkeypatch):
    monkeypatch.setattr(settings, "max_image_mb", 0)
    files = {"file": ("dash.jpg", _make_jpeg_bytes(), "image/jpeg")}

    resp = client.post("/classify", files=files)
    assert resp.status_code == 413
    assert resp.json()["error"]["code"] == "payload_too_large"

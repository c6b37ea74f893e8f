from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from dashlight.config import settings

router = APIRouter(tags=["ops"])


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "app": settings.app_name, "vision_engine": settings.vision_engine}


@router.get("/metrics")
def metrics() -> Response:
    """Prometheus text exposition of the process-wide registry."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

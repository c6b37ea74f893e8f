import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, UploadFile

from dashlight.analyzers.local_classifier import LocalClassifier
from dashlight.analyzers.vision_factory import UnavailableInferenceBackend, create_inference_backend
from dashlight.api.schemas import (
    CandidateOut,
    ClassifyResponse,
    CropInfo,
    CropRequestBody,
    CropResponse,
    LabelsResponse,
    MetaInfo,
    WarningLightInfoOut,
)
from dashlight.config import settings
from dashlight.geometry.crop import (
    CropRequest,
    FillMode,
    Orientation,
    Rect,
    Size,
    compute_crop,
    crop_to_guide,
    guide_rect_for_viewport,
)
from dashlight.pipelines.classify_pipeline import ClassificationPipeline
from dashlight.preprocessing.image_preprocess import load_image_upload
from dashlight.providers.base import ProviderConfig, ProviderId
from dashlight.vocabulary import LABELS
from dashlight.warning_lights import lookup

router = APIRouter(tags=["classify"])

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_pipeline() -> ClassificationPipeline:
    """Built once per process; holds only read-only collaborators."""
    try:
        backend = create_inference_backend()
    except Exception as e:
        # keep serving: each request then ends with an "On-device classification failed" outcome
        logger.exception("vision_backend_unavailable engine=%s", settings.vision_engine)
        backend = UnavailableInferenceBackend(reason=f"{type(e).__name__}: {e}")

    return ClassificationPipeline(
        LocalClassifier(backend),
        threshold=settings.confidence_threshold,
        remote_max_edge=settings.remote_max_edge,
        remote_jpeg_quality=settings.remote_jpeg_quality,
        remote_timeout_seconds=settings.remote_timeout_seconds,
    )


def _resolve_provider_config(provider: str, api_key: Optional[str]) -> ProviderConfig:
    """
    Snapshot the cloud fallback settings for one request.

    The configured key only applies to the configured provider; choosing another
    provider requires passing its key explicitly.
    """
    try:
        configured = ProviderId.parse(settings.provider)
        chosen = ProviderId.parse(provider) if (provider or "").strip() else configured
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "invalid_parameters", "message": str(e)})

    key = (api_key or "").strip()
    endpoint = None
    if chosen == configured:
        key = key or settings.provider_api_key.strip()
        endpoint = settings.provider_endpoint

    return ProviderConfig(provider=chosen, api_key=key, endpoint=endpoint)


def _parse_fill_mode(value: str) -> FillMode:
    try:
        return FillMode((value or "aspect_fill").strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail={"code": "invalid_parameters", "message": "fill_mode must be 'aspect_fill' or 'aspect_fit'"},
        )


@router.post("/classify", response_model=ClassifyResponse)
async def classify_image(
    file: UploadFile = File(...),
    provider: str = Form(""),
    viewport_width: Optional[float] = Form(None),
    viewport_height: Optional[float] = Form(None),
    fill_mode: str = Form("aspect_fill"),
    x_provider_key: Optional[str] = Header(None),
    pipeline: ClassificationPipeline = Depends(get_pipeline),
):
    config = _resolve_provider_config(provider, x_provider_key)
    mode = _parse_fill_mode(fill_mode)

    img = await load_image_upload(file, max_mb=settings.max_image_mb)
    image = img.pil

    crop = CropInfo(applied=False)
    if viewport_width is not None and viewport_height is not None:
        image, rect = crop_to_guide(
            image,
            Size(width=viewport_width, height=viewport_height),
            guide_size=settings.guide_size,
            y_offset=settings.guide_y_offset,
            fill_mode=mode,
            padding=settings.crop_padding,
        )
        if rect is not None:
            crop = CropInfo(applied=True, box=list(rect.box))

    outcome = await pipeline.run(image, config)

    logger.info(
        "classify_request filename=%s provenance=%s candidates=%d cropped=%s",
        file.filename,
        outcome.provenance,
        len(outcome.candidates),
        crop.applied,
    )

    return ClassifyResponse(
        provenance=outcome.provenance,
        provider=outcome.provider,
        message=outcome.message,
        candidates=[
            CandidateOut(
                label=c.label,
                confidence=float(c.confidence),
                resolved=c.resolved,
                info=WarningLightInfoOut(**lookup(c.label).to_dict()),
            )
            for c in outcome.candidates
        ],
        crop=crop,
        meta=MetaInfo(duration_ms=outcome.duration_ms, trace=[s.value for s in outcome.trace]),
    )


@router.post("/crop", response_model=CropResponse)
def compute_guide_crop(body: CropRequestBody):
    viewport = Size(width=body.viewport_width, height=body.viewport_height)
    guide = (
        Rect(x=body.guide.x, y=body.guide.y, width=body.guide.width, height=body.guide.height)
        if body.guide is not None
        else guide_rect_for_viewport(viewport, settings.guide_size, settings.guide_y_offset)
    )
    req = CropRequest(
        source_size=Size(width=body.source_width, height=body.source_height),
        viewport_size=viewport,
        guide_rect=guide,
        orientation=Orientation(body.orientation),
        fill_mode=FillMode(body.fill_mode),
        padding=settings.crop_padding if body.padding is None else body.padding,
    )

    # GeometryError is rendered by the domain error handler (422 degenerate_crop)
    rect = compute_crop(req)

    return CropResponse(
        left=rect.left,
        top=rect.top,
        right=rect.right,
        bottom=rect.bottom,
        width=rect.width,
        height=rect.height,
    )


@router.get("/labels", response_model=LabelsResponse)
def list_labels():
    return LabelsResponse(labels=[WarningLightInfoOut(**lookup(label).to_dict()) for label in LABELS])

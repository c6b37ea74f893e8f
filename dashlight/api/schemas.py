from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------
# Shared
# ---------

class WarningLightInfoOut(BaseModel):
    id: str
    display_name: str
    urgency: Literal["critical", "warning", "info"]
    short_description: str
    what_it_means: str
    what_to_do: str
    symbol_color: str


# ---------
# /classify
# ---------

class CandidateOut(BaseModel):
    label: str
    confidence: float
    resolved: bool = True
    info: WarningLightInfoOut


class CropInfo(BaseModel):
    applied: bool = False
    box: Optional[List[int]] = None  # [left, top, right, bottom] in upright pixels


class MetaInfo(BaseModel):
    duration_ms: Optional[int] = None
    trace: List[str] = Field(default_factory=list)


class ClassifyResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    provenance: Literal["local", "remote"]
    provider: Optional[str] = None
    message: Optional[str] = None
    candidates: List[CandidateOut] = Field(default_factory=list)
    crop: CropInfo
    meta: Optional[MetaInfo] = None


# ---------
# /crop
# ---------

class GuideRect(BaseModel):
    x: float
    y: float
    width: float
    height: float


class CropRequestBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source_width: float
    source_height: float
    orientation: int = Field(default=1, ge=1, le=8)  # EXIF orientation tag
    viewport_width: float
    viewport_height: float
    guide: Optional[GuideRect] = None  # defaults to the configured centred guide box
    fill_mode: Literal["aspect_fill", "aspect_fit"] = "aspect_fill"
    padding: Optional[float] = Field(default=None, ge=0.0)


class CropResponse(BaseModel):
    left: int
    top: int
    right: int
    bottom: int
    width: int
    height: int


# ---------
# /labels
# ---------

class LabelsResponse(BaseModel):
    labels: List[WarningLightInfoOut]


# ---------
# Consistent error payload
# ---------

class ErrorBody(BaseModel):
    code: str
    message: str
    request_id: Optional[str] = None


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody

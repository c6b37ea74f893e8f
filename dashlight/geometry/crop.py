"""
Guide-box crop geometry.

Maps the fixed on-screen guide box onto the pixels of a captured photo.

The photo's pixel data arrives in sensor orientation (usually landscape) with an
EXIF orientation tag describing how it must be rotated for display. Everything
here works in upright pixel space: the tag is applied first, then the preview
viewport's scaling is undone, and the output rectangle carries no orientation
of its own.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple

from PIL import Image, ImageOps

from dashlight.errors import GeometryError

logger = logging.getLogger(__name__)

DEFAULT_PADDING = 0.10


class Orientation(IntEnum):
    """EXIF orientation tag values (0x0112)."""
    UP = 1
    UP_MIRRORED = 2
    DOWN = 3
    DOWN_MIRRORED = 4
    LEFT_MIRRORED = 5
    RIGHT = 6
    RIGHT_MIRRORED = 7
    LEFT = 8

    @property
    def swaps_axes(self) -> bool:
        return self.value >= 5


class FillMode(str, Enum):
    ASPECT_FILL = "aspect_fill"
    ASPECT_FIT = "aspect_fit"


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    def inset(self, dx: float, dy: float) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width - 2 * dx, self.height - 2 * dy)

    def intersection(self, other: "Rect") -> Optional["Rect"]:
        x0 = max(self.x, other.x)
        y0 = max(self.y, other.y)
        x1 = min(self.max_x, other.max_x)
        y1 = min(self.max_y, other.max_y)
        if x1 <= x0 or y1 <= y0:
            return None
        return Rect(x0, y0, x1 - x0, y1 - y0)


@dataclass(frozen=True)
class PixelRect:
    """Integer crop rectangle in upright pixel space (PIL box convention)."""
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def box(self) -> Tuple[int, int, int, int]:
        return (self.left, self.top, self.right, self.bottom)


@dataclass(frozen=True)
class CropRequest:
    source_size: Size                # stored pixel dimensions, before orientation is applied
    viewport_size: Size              # preview size in points
    guide_rect: Rect                 # guide box in viewport points
    orientation: Orientation = Orientation.UP
    fill_mode: FillMode = FillMode.ASPECT_FILL
    padding: float = DEFAULT_PADDING


def upright_size(size: Size, orientation: Orientation) -> Size:
    """Size of the image once its orientation tag has been applied."""
    if Orientation(orientation).swaps_axes:
        return Size(width=size.height, height=size.width)
    return size


def guide_rect_for_viewport(viewport: Size, guide_size: float = 240.0, y_offset: float = -40.0) -> Rect:
    """Square guide box centred in the viewport, shifted vertically by y_offset."""
    cx = viewport.width / 2
    cy = viewport.height / 2 + y_offset
    return Rect(x=cx - guide_size / 2, y=cy - guide_size / 2, width=guide_size, height=guide_size)


def visible_rect(image: Size, viewport: Size, fill_mode: FillMode) -> Rect:
    """
    Region of the upright image that the viewport shows, in image pixels.

    aspect_fill: one axis fully visible, the other cropped symmetrically.
    aspect_fit: the whole image is visible and letterboxed, so the region
    extends past the image on the padded axis.
    """
    view_aspect = viewport.width / viewport.height
    img_aspect = image.width / image.height

    if FillMode(fill_mode) == FillMode.ASPECT_FILL:
        if img_aspect > view_aspect:
            # wider than the viewport: clipped left/right
            vis_w = image.height * view_aspect
            return Rect(x=(image.width - vis_w) / 2, y=0.0, width=vis_w, height=image.height)
        # taller than the viewport: clipped top/bottom
        vis_h = image.width / view_aspect
        return Rect(x=0.0, y=(image.height - vis_h) / 2, width=image.width, height=vis_h)

    if img_aspect > view_aspect:
        # bars above/below
        vis_h = image.width / view_aspect
        return Rect(x=0.0, y=(image.height - vis_h) / 2, width=image.width, height=vis_h)
    vis_w = image.height * view_aspect
    return Rect(x=(image.width - vis_w) / 2, y=0.0, width=vis_w, height=image.height)


def compute_crop(req: CropRequest) -> PixelRect:
    """
    Convert the guide box into a pixel crop of the upright image.

    Raises GeometryError for non-positive source or viewport dimensions and
    when the clamped crop has no area.
    """
    if req.source_size.width <= 0 or req.source_size.height <= 0:
        raise GeometryError(
            f"source dimensions must be positive, got {req.source_size.width}x{req.source_size.height}"
        )
    if req.viewport_size.width <= 0 or req.viewport_size.height <= 0:
        raise GeometryError(
            f"viewport aspect is undefined for {req.viewport_size.width}x{req.viewport_size.height}"
        )
    if req.padding < 0:
        raise GeometryError(f"padding must be >= 0, got {req.padding}")

    # 1) upright pixel space
    image = upright_size(req.source_size, req.orientation)

    # 2) what the viewport actually shows
    vis = visible_rect(image, req.viewport_size, req.fill_mode)

    # 3) viewport points -> image pixels
    sx = vis.width / req.viewport_size.width
    sy = vis.height / req.viewport_size.height
    guide = req.guide_rect
    mapped = Rect(
        x=vis.x + guide.x * sx,
        y=vis.y + guide.y * sy,
        width=guide.width * sx,
        height=guide.height * sy,
    )

    # 4) symmetric padding
    padded = mapped.inset(-mapped.width * req.padding, -mapped.height * req.padding)

    # 5) clamp, then snap outward to whole pixels
    bounds = Rect(0.0, 0.0, image.width, image.height)
    clamped = padded.intersection(bounds) if padded.width > 0 and padded.height > 0 else None
    if clamped is None:
        raise GeometryError("guide box does not overlap the image")

    img_w = int(image.width)
    img_h = int(image.height)
    rect = PixelRect(
        left=max(0, math.floor(clamped.x)),
        top=max(0, math.floor(clamped.y)),
        right=min(img_w, math.ceil(clamped.max_x)),
        bottom=min(img_h, math.ceil(clamped.max_y)),
    )
    if rect.width <= 0 or rect.height <= 0:
        raise GeometryError("crop rectangle has zero area")

    return rect


# -----------------------------
# Pixel-level helpers
# -----------------------------

def normalize_orientation(image: Image.Image) -> Image.Image:
    """
    Re-render the image so pixel rows/columns match what a viewer sees.

    Idempotent: an upright image (or one without EXIF) comes back unchanged.
    """
    upright = ImageOps.exif_transpose(image)
    return upright if upright is not None else image


def crop_to_guide(
    image: Image.Image,
    viewport: Size,
    *,
    guide_size: float = 240.0,
    y_offset: float = -40.0,
    fill_mode: FillMode = FillMode.ASPECT_FILL,
    padding: float = DEFAULT_PADDING,
) -> Tuple[Image.Image, Optional[PixelRect]]:
    """
    Crop a captured photo to the guide region.

    Returns (image, rect). On GeometryError the full upright image is returned
    with rect=None.
    """
    upright = normalize_orientation(image)
    req = CropRequest(
        source_size=Size(width=upright.width, height=upright.height),
        viewport_size=viewport,
        guide_rect=guide_rect_for_viewport(viewport, guide_size, y_offset),
        orientation=Orientation.UP,
        fill_mode=fill_mode,
        padding=padding,
    )

    try:
        rect = compute_crop(req)
    except GeometryError as e:
        logger.warning("guide_crop_skipped reason=%s size=%dx%d", e, upright.width, upright.height)
        return upright, None

    logger.debug("guide_crop box=%s size=%dx%d", rect.box, upright.width, upright.height)
    return upright.crop(rect.box), rect

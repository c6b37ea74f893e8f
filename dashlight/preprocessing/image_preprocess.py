"""
Image handling around the classifier: upload validation, decoding, and the
two derived encodings (model input tensor, provider JPEG).
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from typing import NoReturn, Tuple

import numpy as np
from fastapi import HTTPException, UploadFile
from PIL import Image, ImageOps

from dashlight.geometry.crop import normalize_orientation

ACCEPTED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png"})

BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class LoadedImage:
    """Decoded upload, already rotated upright and converted to RGB."""
    width: int
    height: int
    pil: Image.Image


def _reject(status_code: int, code: str, message: str) -> NoReturn:
    raise HTTPException(status_code=status_code, detail={"code": code, "message": message})


def decode_image(data: bytes) -> Image.Image:
    """
    Decode JPEG/PNG bytes into an upright RGB image.
    Raises ValueError for anything PIL cannot read.
    """
    try:
        with Image.open(io.BytesIO(data)) as raw:
            upright = normalize_orientation(raw)
            return upright.convert("RGB")
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise ValueError(f"undecodable image: {e}") from e


async def load_image_upload(file: UploadFile, *, max_mb: int = 10) -> LoadedImage:
    """
    Validate an uploaded photo and decode it.

    400 unsupported_file_type: declared content type is not JPEG/PNG
    413 payload_too_large: body exceeds max_mb
    422 unprocessable_input: bytes do not decode as an image
    """
    # declared type only; the decoder is the real check
    if file.content_type not in ACCEPTED_CONTENT_TYPES:
        _reject(400, "unsupported_file_type", f"Expected JPEG or PNG, got content_type={file.content_type}")

    data = await file.read()
    if len(data) > max_mb * BYTES_PER_MB:
        _reject(413, "payload_too_large", f"Image is larger than {max_mb}MB")

    try:
        img = decode_image(data)
    except ValueError:
        _reject(422, "unprocessable_input", "Image could not be decoded")

    return LoadedImage(width=img.width, height=img.height, pil=img)


def to_model_input(img: Image.Image, target_size: Tuple[int, int] = (224, 224)) -> np.ndarray:
    """
    Centre-crop to the model's aspect ratio, resize, and scale to float32 [0,1].
    target_size is (width, height); the result is (height, width, 3).
    """
    fitted = ImageOps.fit(img.convert("RGB"), target_size, method=Image.BILINEAR, centering=(0.5, 0.5))
    return np.asarray(fitted, dtype=np.float32) / 255.0


def prepare_remote_image(img: Image.Image, *, max_edge: int = 512, quality: int = 80) -> bytes:
    """
    Downscale so the longer edge is at most max_edge (never upscale) and encode as JPEG.
    Bounds provider payload size and latency.
    """
    rgb = img.convert("RGB")
    w, h = rgb.size
    scale = min(max_edge / w, max_edge / h, 1.0)
    if scale < 1.0:
        rgb = rgb.resize((max(1, round(w * scale)), max(1, round(h * scale))), Image.BILINEAR)

    out = io.BytesIO()
    rgb.save(out, format="JPEG", quality=quality)
    return out.getvalue()

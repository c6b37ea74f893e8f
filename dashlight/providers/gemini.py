"""
Gemini (Google generateContent).

The key travels in the x-goog-api-key header rather than the query string.
Replies may contain "thinking" parts without text; the first non-empty text
part is the answer.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from dashlight.errors import RemoteError
from dashlight.providers.base import ProviderId, ProviderProfile

logger = logging.getLogger(__name__)

ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"


def build_headers(api_key: str) -> Dict[str, str]:
    return {"x-goog-api-key": api_key}


def build_body(image_b64: str, prompt: str) -> Dict[str, Any]:
    return {
        "contents": [
            {
                "parts": [
                    {"inline_data": {"mime_type": "image/jpeg", "data": image_b64}},
                    {"text": prompt},
                ]
            }
        ]
    }


def extract_text(payload: Dict[str, Any]) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as e:
        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict):
            logger.warning("gemini_api_error message=%s", error.get("message", "unknown"))
        raise RemoteError("parse", f"unexpected Gemini response shape: {e!r}") from e

    if not isinstance(parts, list):
        raise RemoteError("parse", "Gemini content.parts is not a list")

    for part in parts:
        text = part.get("text") if isinstance(part, dict) else None
        if isinstance(text, str) and text:
            return text

    raise RemoteError("parse", "no text in Gemini parts")


PROFILE = ProviderProfile(
    id=ProviderId.GEMINI,
    display_name="Gemini (Google)",
    endpoint=ENDPOINT,
    build_headers=build_headers,
    build_body=build_body,
    extract_text=extract_text,
)

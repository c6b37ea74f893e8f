"""
Claude (Anthropic Messages API).

Auth via x-api-key plus a pinned anthropic-version header; the image goes in a
base64 "image" content block ahead of the text prompt.
"""
from __future__ import annotations

from typing import Any, Dict

from dashlight.errors import RemoteError
from dashlight.providers.base import ProviderId, ProviderProfile

ENDPOINT = "https://api.anthropic.com/v1/messages"
MODEL = "claude-sonnet-4-20250514"
API_VERSION = "2023-06-01"


def build_headers(api_key: str) -> Dict[str, str]:
    return {"x-api-key": api_key, "anthropic-version": API_VERSION}


def build_body(image_b64: str, prompt: str) -> Dict[str, Any]:
    return {
        "model": MODEL,
        "max_tokens": 100,
        "messages": [
            {
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": "image/jpeg", "data": image_b64},
                    },
                    {"type": "text", "text": prompt},
                ],
            }
        ],
    }


def extract_text(payload: Dict[str, Any]) -> str:
    try:
        text = payload["content"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise RemoteError("parse", f"unexpected Claude response shape: {e!r}") from e
    if not isinstance(text, str):
        raise RemoteError("parse", "Claude response text is not a string")
    return text


PROFILE = ProviderProfile(
    id=ProviderId.CLAUDE,
    display_name="Claude (Anthropic)",
    endpoint=ENDPOINT,
    build_headers=build_headers,
    build_body=build_body,
    extract_text=extract_text,
)

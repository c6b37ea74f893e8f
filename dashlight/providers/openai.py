"""
GPT-4o (OpenAI Chat Completions).

Bearer auth; the image is sent inline as a data URL in an image_url part.
"""
from __future__ import annotations

from typing import Any, Dict

from dashlight.errors import RemoteError
from dashlight.providers.base import ProviderId, ProviderProfile

ENDPOINT = "https://api.openai.com/v1/chat/completions"
MODEL = "gpt-4o"


def build_headers(api_key: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"}


def build_body(image_b64: str, prompt: str) -> Dict[str, Any]:
    return {
        "model": MODEL,
        "max_tokens": 100,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image_b64}"}},
                    {"type": "text", "text": prompt},
                ],
            }
        ],
    }


def extract_text(payload: Dict[str, Any]) -> str:
    try:
        text = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise RemoteError("parse", f"unexpected GPT-4o response shape: {e!r}") from e
    if not isinstance(text, str):
        raise RemoteError("parse", "GPT-4o message content is not a string")
    return text


PROFILE = ProviderProfile(
    id=ProviderId.GPT4O,
    display_name="GPT-4o (OpenAI)",
    endpoint=ENDPOINT,
    build_headers=build_headers,
    build_body=build_body,
    extract_text=extract_text,
)

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional


class ProviderId(str, Enum):
    CLAUDE = "claude"
    GPT4O = "gpt4o"
    GEMINI = "gemini"

    @classmethod
    def parse(cls, value: "str | ProviderId") -> "ProviderId":
        if isinstance(value, ProviderId):
            return value
        key = (value or "").strip().lower()
        aliases = {
            "anthropic": cls.CLAUDE,
            "openai": cls.GPT4O,
            "gpt-4o": cls.GPT4O,
            "google": cls.GEMINI,
        }
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unsupported provider: {value!r}") from None


@dataclass(frozen=True)
class ProviderConfig:
    """
    Per-request cloud fallback settings.

    Built by the caller at the start of each request and never cached by the pipeline.
    endpoint=None means the provider's default URL.
    """
    provider: ProviderId
    api_key: str = ""
    endpoint: Optional[str] = None

    @property
    def has_credential(self) -> bool:
        return bool((self.api_key or "").strip())

    def __repr__(self) -> str:
        # never leak the key into logs
        return f"ProviderConfig(provider={self.provider.value!r}, api_key={'***' if self.has_credential else ''!r}, endpoint={self.endpoint!r})"


@dataclass(frozen=True)
class ProviderProfile:
    """
    One entry of the provider function table.

    build_headers(api_key) -> auth headers
    build_body(image_b64, prompt) -> JSON request body
    extract_text(payload) -> assistant text (raises RemoteError(kind="parse"))
    """
    id: ProviderId
    display_name: str
    endpoint: str
    build_headers: Callable[[str], Dict[str, str]]
    build_body: Callable[[str, str], Dict[str, Any]]
    extract_text: Callable[[Dict[str, Any]], str]

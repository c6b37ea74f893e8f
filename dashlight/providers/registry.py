from __future__ import annotations

from typing import Dict

from dashlight.providers import anthropic, gemini, openai
from dashlight.providers.base import ProviderId, ProviderProfile


PROVIDERS: Dict[ProviderId, ProviderProfile] = {
    ProviderId.CLAUDE: anthropic.PROFILE,
    ProviderId.GPT4O: openai.PROFILE,
    ProviderId.GEMINI: gemini.PROFILE,
}


def get_provider(provider: "ProviderId | str") -> ProviderProfile:
    return PROVIDERS[ProviderId.parse(provider)]

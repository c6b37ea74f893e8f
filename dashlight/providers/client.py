from __future__ import annotations

import base64
import logging
from typing import Optional, Sequence

import httpx

from dashlight.analyzers.vision_base import ClassificationCandidate
from dashlight.errors import RemoteError
from dashlight.providers.base import ProviderConfig
from dashlight.providers.parsing import parse_identify_answer
from dashlight.providers.prompting import build_identify_prompt
from dashlight.providers.registry import get_provider
from dashlight.vocabulary import LABELS

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0


async def identify(
    image_bytes: bytes,
    vocabulary: Sequence[str] = LABELS,
    *,
    config: ProviderConfig,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> ClassificationCandidate:
    """
    Ask one cloud provider to name the symbol in a JPEG image.

    Single attempt, bounded by timeout. Every failure surfaces as RemoteError:
    - network: no response
    - auth: non-2xx status
    - parse: reply body or embedded answer unreadable
    """
    profile = get_provider(config.provider)
    url = config.endpoint or profile.endpoint

    image_b64 = base64.b64encode(image_bytes).decode("utf-8")
    body = profile.build_body(image_b64, build_identify_prompt(vocabulary))
    headers = {"Content-Type": "application/json", **profile.build_headers(config.api_key.strip())}

    logger.info("remote_identify_start provider=%s image_b64_chars=%d", profile.id.value, len(image_b64))

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as http:
                resp = await http.post(url, json=body, headers=headers)
        else:
            resp = await client.post(url, json=body, headers=headers, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("remote_identify_failed provider=%s kind=network error=%s", profile.id.value, type(e).__name__)
        raise RemoteError("network", f"{profile.display_name}: {type(e).__name__}: {e}") from e

    if not resp.is_success:
        logger.warning(
            "remote_identify_failed provider=%s kind=auth status=%d body=%s",
            profile.id.value,
            resp.status_code,
            resp.text[:300],
        )
        raise RemoteError("auth", f"{profile.display_name}: HTTP {resp.status_code}", status_code=resp.status_code)

    try:
        payload = resp.json()
    except ValueError as e:
        logger.warning("remote_identify_failed provider=%s kind=parse reason=body_not_json", profile.id.value)
        raise RemoteError("parse", f"{profile.display_name}: response body is not JSON") from e

    try:
        text = profile.extract_text(payload)
    except RemoteError:
        logger.warning("remote_identify_failed provider=%s kind=parse body=%s", profile.id.value, resp.text[:300])
        raise

    try:
        candidate = parse_identify_answer(text, vocabulary)
    except ValueError as e:
        logger.warning("remote_identify_failed provider=%s kind=parse text=%r", profile.id.value, text[:300])
        raise RemoteError("parse", f"{profile.display_name}: {e}") from e

    logger.info(
        "remote_identify_ok provider=%s label=%s conf=%.3f resolved=%s",
        profile.id.value,
        candidate.label,
        candidate.confidence,
        candidate.resolved,
    )
    return candidate

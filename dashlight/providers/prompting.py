from __future__ import annotations

import json
from typing import Sequence

SYSTEM_INSTRUCTION = "This is a photo of a car dashboard warning light symbol. Identify which symbol it is."

OUTPUT_SCHEMA_HINT = {"label": "<label>", "confidence": "<0.0-1.0>"}


def build_identify_prompt(vocabulary: Sequence[str]) -> str:
    # Keep it short + strict: the reply is parsed as a single JSON object.
    schema = json.dumps(OUTPUT_SCHEMA_HINT).replace('"<0.0-1.0>"', "<0.0-1.0>")
    return (
        f"{SYSTEM_INSTRUCTION} "
        f"Reply ONLY with a JSON object, nothing else: {schema}. "
        f"Choose label from: {', '.join(vocabulary)}. "
        "If unsure, pick the closest match."
    )

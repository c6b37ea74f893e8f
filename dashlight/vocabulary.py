from __future__ import annotations

import re
from typing import Dict, Optional, Sequence, Tuple

# Output index i of the local model corresponds to LABELS[i].
LABELS: Tuple[str, ...] = (
    "abs", "adaptive_cruise", "airbag", "auto_headlights", "auto_start_stop",
    "battery", "blind_spot", "brake", "check_engine", "cruise_control",
    "door_ajar", "dpf_warning", "esp", "fog_light", "frost_warning",
    "fuel", "glow_plug", "high_beam", "hill_assist", "hood_trunk_open",
    "key_warning", "lane_departure", "low_beam", "master_warning", "oil_pressure",
    "parking_brake", "power_steering", "rear_fog", "seatbelt", "service_engine",
    "temperature", "tire_pressure", "traction_control", "transmission",
    "turn_signal", "washer_fluid",
)

_INDEX: Dict[str, int] = {label: i for i, label in enumerate(LABELS)}

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def index_of(label: str) -> Optional[int]:
    return _INDEX.get(label)


def sort_key(label: str) -> int:
    """Vocabulary position; labels outside the vocabulary sort last."""
    return _INDEX.get(label, len(LABELS))


def _normalize(text: str) -> str:
    return _NON_ALNUM_RE.sub("", text.strip().lower())


def resolve_label(raw: str, vocabulary: Sequence[str] = LABELS) -> Tuple[str, bool]:
    """
    Map a free-text label onto the vocabulary.

    Order of attempts:
    1) exact match
    2) exact match after normalization (case, separators)
    3) first entry (vocabulary order) whose normalized form contains, or is
       contained by, the normalized label

    Returns (label, resolved). Unresolved labels come back unchanged with resolved=False.

    The containment step is a heuristic; short entries such as "abs" or "esp"
    can match unrelated text.
    """
    if raw in vocabulary:
        return raw, True

    key = _normalize(raw)
    if not key:
        return raw, False

    normalized = [(_normalize(v), v) for v in vocabulary]

    for norm, label in normalized:
        if norm == key:
            return label, True

    for norm, label in normalized:
        if norm and (norm in key or key in norm):
            return label, True

    return raw, False

from __future__ import annotations

import json
from typing import Any

from .config import settings

TARGET_MIN = 8
TARGET_MAX = 92
GUESS_MIN = 0
GUESS_MAX = 100
GUESS_START_VALUE = 50
POINTS_PER_PROMPT = 4
DEFAULT_PLAYER_NAME = "Player"
PLAYER_NAME_MAX_LENGTH = settings.join_name_max_length
WRITE_MS_PER_PROMPT = settings.write_ms_per_prompt
WRITE_MIN_MS = settings.write_min_ms
WRITE_MAX_MS = settings.write_max_ms
SCALES_CATALOG_PATH = settings.scales_path


def _sanitize_scale_entry(raw: Any) -> dict[str, Any] | None:
    if not isinstance(raw, dict):
        return None

    scale_id = str(raw.get("id") or "").strip()
    if not scale_id:
        return None

    entry = dict(raw)
    entry["id"] = scale_id[:64]
    return entry


def _load_scale_catalog() -> list[dict[str, Any]]:
    payload = json.loads(SCALES_CATALOG_PATH.read_text(encoding="utf-8"))
    scales_raw = payload.get("scales") if isinstance(payload, dict) else payload
    if not isinstance(scales_raw, list):
        raise RuntimeError("scales.json must contain a 'scales' list")

    catalog: list[dict[str, Any]] = []
    seen_ids: set[str] = set()
    for item in scales_raw:
        entry = _sanitize_scale_entry(item)
        if entry is None or entry["id"] in seen_ids:
            continue
        seen_ids.add(entry["id"])
        catalog.append(entry)

    if not catalog:
        raise RuntimeError("No valid scales were loaded from scales.json")

    return catalog


SCALES: list[dict[str, Any]] = _load_scale_catalog()

from __future__ import annotations

import math
import random
import re
import time
import uuid
from typing import Any, Sequence, TypeVar

from .runtime_constants import (
    DEFAULT_PLAYER_NAME,
    GUESS_MAX,
    GUESS_MIN,
    PLAYER_NAME_MAX_LENGTH,
)

T = TypeVar("T")


def now_ms() -> int:
    return int(time.time() * 1000)


def random_id() -> str:
    return str(uuid.uuid4())


def normalize_room_code(raw: Any) -> str:
    return str(raw or "").strip().upper()


def sanitize_player_name(raw: Any) -> str:
    value = str(raw or "").strip()
    if not value:
        return DEFAULT_PLAYER_NAME
    cleaned = re.sub(r"\s+", " ", value)[:PLAYER_NAME_MAX_LENGTH].strip()
    return cleaned or DEFAULT_PLAYER_NAME


def shuffle(items: Sequence[T]) -> list[T]:
    copy = list(items)
    random.shuffle(copy)
    return copy


def sample_without_repeat(items: Sequence[T], count: int) -> list[T]:
    return random.sample(list(items), max(0, min(count, len(items))))


def parse_guess_value(raw: Any) -> int | float | None:
    """Coerce a client guess into ``[GUESS_MIN, GUESS_MAX]``.

    Returns ``None`` for anything that is not a number (booleans included).
    Numeric strings are accepted; integral results come back as ``int``.
    """
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, int):
        # Clamp before any float conversion; JSON ints can be arbitrarily large.
        return max(GUESS_MIN, min(GUESS_MAX, raw))
    if isinstance(raw, float):
        value = raw
    else:
        try:
            value = float(str(raw).strip())
        except (TypeError, ValueError, OverflowError):
            return None

    if math.isnan(value):
        return None

    value = max(float(GUESS_MIN), min(float(GUESS_MAX), value))
    if value.is_integer():
        return int(value)
    return value

from __future__ import annotations

from .runtime_constants import WRITE_MAX_MS, WRITE_MIN_MS, WRITE_MS_PER_PROMPT

# (max distance, points), checked in order
SCORE_BANDS: tuple[tuple[int, int], ...] = (
    (3, 4),
    (8, 3),
    (14, 2),
    (22, 1),
)


def score_from_distance(distance: int | float) -> int:
    for max_distance, points in SCORE_BANDS:
        if distance <= max_distance:
            return points
    return 0


def scales_per_player(player_count: int) -> int:
    if player_count <= 4:
        return 3
    if player_count <= 7:
        return 2
    return 1


def compute_write_duration_ms(
    total_prompts: int,
    *,
    per_prompt_ms: int = WRITE_MS_PER_PROMPT,
    min_ms: int = WRITE_MIN_MS,
    max_ms: int = WRITE_MAX_MS,
) -> int:
    raw = max(0, int(total_prompts)) * per_prompt_ms
    return min(max_ms, max(min_ms, raw))

from __future__ import annotations

import random
from typing import Any, Callable, Iterable, Sequence

from .runtime_constants import SCALES, TARGET_MAX, TARGET_MIN
from .runtime_scoring import scales_per_player
from .runtime_types import Game, Prompt
from .runtime_utils import random_id, sample_without_repeat


def build_prompts(
    scales: Sequence[dict[str, Any]],
    count: int,
    *,
    new_prompt_id: Callable[[], str] = random_id,
) -> list[Prompt]:
    return [
        Prompt(
            prompt_id=new_prompt_id(),
            scale=scale,
            target=random.randint(TARGET_MIN, TARGET_MAX),
        )
        for scale in sample_without_repeat(scales, count)
    ]


def generate_assignments(
    player_ids: Iterable[str],
    scales: Sequence[dict[str, Any]] = SCALES,
    *,
    new_prompt_id: Callable[[], str] = random_id,
) -> dict[str, list[Prompt]]:
    """Give every player their private prompts for a round.

    Each player draws independently from the whole catalog, so two players may
    share a scale, but one player never sees the same scale twice.
    """
    ids = list(player_ids)
    per_player = scales_per_player(len(ids))
    return {
        peer_id: build_prompts(scales, per_player, new_prompt_id=new_prompt_id)
        for peer_id in ids
    }


def find_prompt(game: Game, peer_id: str, prompt_id: str) -> Prompt | None:
    for prompt in game.assignments.get(peer_id, []):
        if prompt.prompt_id == prompt_id:
            return prompt
    return None


def drop_player_assignments(game: Game, peer_id: str) -> list[str]:
    """Forget a departed player's prompts and any clues written for them."""
    prompts = game.assignments.pop(peer_id, [])
    removed: list[str] = []
    for prompt in prompts:
        game.clues.pop(prompt.prompt_id, None)
        removed.append(prompt.prompt_id)
    return removed

from __future__ import annotations

from typing import Any, Callable

from .runtime_constants import DEFAULT_PLAYER_NAME
from .runtime_types import Clue, Game, Prompt, Room


def required_voter_count(room: Room) -> int:
    # Every prompt has exactly one author, and the author never votes.
    return max(0, len(room.players) - 1)


def serialize_prompt(prompt: Prompt) -> dict[str, Any]:
    return {
        "promptId": prompt.prompt_id,
        "scale": prompt.scale,
        "target": prompt.target,
    }


def author_name_for_clue(room: Room, clue: Clue) -> str:
    return room.players.get(clue.author_id) or clue.author_name or DEFAULT_PLAYER_NAME


def build_state_payload(room: Room, *, now_ms: Callable[[], int]) -> dict[str, Any]:
    game = room.game
    phase = room.phase
    in_write = game is not None and phase == "write"
    in_guess = game is not None and phase == "guess"

    return {
        "type": "room:state",
        "roomCode": room.code,
        "hostId": room.host_id,
        "players": [{"id": peer_id, "name": name} for peer_id, name in room.players.items()],
        "phase": phase,
        "score": game.score if game is not None else 0,
        "maxScore": game.max_score if game is not None else None,
        "writeEndsAt": game.write_ends_at if in_write else None,
        "writeDurationMs": game.write_duration_ms if in_write else None,
        "readyCount": len(game.clues) if in_write else 0,
        "totalPrompts": game.total_prompts if in_write else 0,
        "guessIndex": game.current_index if in_guess else 0,
        "guessTotal": len(game.guess_order) if in_guess else 0,
        "stateVersion": room.state_version,
        "serverTime": now_ms(),
    }


def build_assignments_payload(room: Room, prompts: list[Prompt]) -> dict[str, Any]:
    return {
        "type": "write:assignments",
        "roomCode": room.code,
        "prompts": [serialize_prompt(prompt) for prompt in prompts],
    }


def build_guess_prompt_payload(room: Room, game: Game, prompt_id: str, clue: Clue) -> dict[str, Any]:
    return {
        "type": "guess:prompt",
        "roomCode": room.code,
        "promptId": prompt_id,
        "index": game.current_index + 1,
        "total": len(game.guess_order),
        "score": game.score,
        "scale": clue.scale,
        "clueText": clue.clue_text,
        "authorId": clue.author_id,
        "authorName": author_name_for_clue(room, clue),
    }


def build_guess_state_payload(game: Game, prompt_id: str, by: str | None) -> dict[str, Any]:
    return {
        "type": "guess:state",
        "promptId": prompt_id,
        "guessValue": game.guess_value,
        "by": by,
    }


def build_ready_state_payload(room: Room, game: Game, prompt_id: str) -> dict[str, Any]:
    ready_ids = list(game.ready_voters)
    return {
        "type": "guess:ready_state",
        "promptId": prompt_id,
        "readyCount": len(ready_ids),
        "requiredCount": required_voter_count(room),
        "readyIds": ready_ids,
    }


def build_reveal_payload(
    game: Game,
    prompt_id: str,
    clue: Clue,
    *,
    distance: int | float,
    points: int,
) -> dict[str, Any]:
    return {
        "type": "guess:reveal",
        "promptId": prompt_id,
        "guess": game.guess_value,
        "target": clue.target,
        "distance": distance,
        "points": points,
        "totalScore": game.score,
    }


def build_game_over_payload(game: Game) -> dict[str, Any]:
    return {
        "type": "game:over",
        "score": game.score,
        "maxScore": game.max_score or 0,
        "reason": game.over_reason,
    }

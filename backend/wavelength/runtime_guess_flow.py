from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .runtime_assignments import find_prompt
from .runtime_phase_flow import start_guess_phase
from .runtime_scoring import score_from_distance
from .runtime_state_sync import (
    build_guess_state_payload,
    build_ready_state_payload,
    build_reveal_payload,
    required_voter_count,
)
from .runtime_types import Clue, Game
from .runtime_utils import parse_guess_value

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .runtime import WavelengthRuntime
    from .runtime_types import Room


async def submit_clue(
    runtime: "WavelengthRuntime",
    room: "Room",
    peer_id: str,
    prompt_id: Any,
    clue_text: Any,
) -> None:
    game = room.game
    if game is None or game.phase != "write":
        return

    prompt = find_prompt(game, peer_id, str(prompt_id or ""))
    if prompt is None:
        return

    text = str(clue_text or "").strip()
    if not text:
        return

    game.clues[prompt.prompt_id] = Clue(
        author_id=peer_id,
        author_name=room.players.get(peer_id, ""),
        scale=prompt.scale,
        target=prompt.target,
        clue_text=text,
    )

    await runtime._send_to_peer(room, peer_id, {"type": "write:ack", "promptId": prompt.prompt_id})
    await runtime._broadcast_state(room)

    if len(game.clues) >= game.total_prompts:
        await start_guess_phase(runtime, room, "all_ready")


def _guessable_clue(room: "Room", peer_id: str, prompt_id: Any) -> "tuple[Game, Clue] | None":
    game = room.game
    if game is None or game.phase != "guess" or game.revealed:
        return None

    current_prompt_id = game.current_prompt_id
    if not current_prompt_id or prompt_id != current_prompt_id:
        return None

    clue = game.clues.get(current_prompt_id)
    if clue is None or clue.author_id == peer_id:
        return None
    return game, clue


async def update_guess(
    runtime: "WavelengthRuntime",
    room: "Room",
    peer_id: str,
    prompt_id: Any,
    raw_value: Any,
) -> None:
    guessable = _guessable_clue(room, peer_id, prompt_id)
    if guessable is None:
        return
    value = parse_guess_value(raw_value)
    if value is None:
        return

    game, _ = guessable
    game.guess_value = value
    await runtime._broadcast(room, build_guess_state_payload(game, str(prompt_id), peer_id))
    await maybe_reveal(runtime, room)


async def cast_ready_vote(
    runtime: "WavelengthRuntime",
    room: "Room",
    peer_id: str,
    prompt_id: Any,
) -> None:
    guessable = _guessable_clue(room, peer_id, prompt_id)
    if guessable is None:
        return

    game, _ = guessable
    game.ready_voters.add(peer_id)
    await runtime._broadcast(room, build_ready_state_payload(room, game, str(prompt_id)))
    await maybe_reveal(runtime, room)


async def maybe_reveal(runtime: "WavelengthRuntime", room: "Room") -> bool:
    game = room.game
    if game is None or game.phase != "guess" or game.revealed:
        return False

    prompt_id = game.current_prompt_id
    if prompt_id is None:
        return False
    clue = game.clues.get(prompt_id)
    if clue is None:
        return False

    if len(game.ready_voters) < required_voter_count(room):
        return False

    distance = abs(game.guess_value - clue.target)
    points = score_from_distance(distance)
    game.score += points
    game.revealed = True
    logger.info(
        "[REVEAL] room=%s prompt=%s guess=%s target=%s points=%s total=%s",
        room.code,
        prompt_id,
        game.guess_value,
        clue.target,
        points,
        game.score,
    )

    await runtime._broadcast(
        room,
        build_reveal_payload(game, prompt_id, clue, distance=distance, points=points),
    )
    await runtime._broadcast_state(room)
    return True

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .runtime_assignments import generate_assignments
from .runtime_constants import GUESS_START_VALUE, POINTS_PER_PROMPT, SCALES
from .runtime_scoring import compute_write_duration_ms
from .runtime_state_sync import (
    build_assignments_payload,
    build_game_over_payload,
    build_guess_prompt_payload,
    build_guess_state_payload,
    build_ready_state_payload,
)
from .runtime_types import Game
from .runtime_utils import now_ms, shuffle

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .runtime import WavelengthRuntime
    from .runtime_types import GuessTrigger, Room


async def start_write_phase(runtime: "WavelengthRuntime", room: "Room") -> None:
    previous = room.game
    if previous is not None:
        runtime._cancel_write_timer(previous)

    assignments = generate_assignments(room.players.keys(), SCALES)
    game = Game(phase="write", assignments=assignments)
    game.write_duration_ms = compute_write_duration_ms(game.total_prompts)
    game.write_ends_at = now_ms() + game.write_duration_ms
    room.game = game
    runtime._schedule_write_timer(room, game, game.write_duration_ms)

    logger.info(
        "[PHASE] room=%s %s->write players=%s prompts=%s duration_ms=%s",
        room.code,
        previous.phase if previous is not None else "lobby",
        len(room.players),
        game.total_prompts,
        game.write_duration_ms,
    )

    for peer_id, prompts in assignments.items():
        await runtime._send_to_peer(room, peer_id, build_assignments_payload(room, prompts))

    await runtime._broadcast(
        room,
        {
            "type": "game:started",
            "roomCode": room.code,
            "phase": "write",
            "writeEndsAt": game.write_ends_at,
            "writeDurationMs": game.write_duration_ms,
        },
    )
    await runtime._broadcast_state(room)


async def on_write_deadline(runtime: "WavelengthRuntime", room: "Room", game: Game) -> None:
    # The timer may have been scheduled for a game that is already gone.
    if room.closed or room.game is not game or game.phase != "write":
        logger.debug("write deadline ignored room=%s phase=%s", room.code, room.phase)
        return
    await start_guess_phase(runtime, room, "timer")


async def start_guess_phase(runtime: "WavelengthRuntime", room: "Room", reason: "GuessTrigger") -> None:
    game = room.game
    if game is None or game.phase != "write":
        return

    runtime._cancel_write_timer(game)
    game.write_ends_at = None
    game.write_duration_ms = None

    clue_ids = list(game.clues.keys())
    if not clue_ids:
        game.phase = "over"
        game.score = 0
        game.max_score = 0
        game.over_reason = "no_clues"
        logger.info("[PHASE] room=%s write->over reason=no_clues trigger=%s", room.code, reason)
        await runtime._broadcast(room, build_game_over_payload(game))
        await runtime._broadcast_state(room)
        return

    game.phase = "guess"
    game.guess_order = shuffle(clue_ids)
    game.current_index = 0
    game.score = 0
    game.max_score = len(game.guess_order) * POINTS_PER_PROMPT
    logger.info(
        "[PHASE] room=%s write->guess reason=%s clues=%s/%s",
        room.code,
        reason,
        len(clue_ids),
        game.total_prompts,
    )

    await runtime._broadcast(room, {"type": "phase:guess", "roomCode": room.code, "reason": reason})
    await runtime._broadcast_state(room)
    await arm_current_prompt(runtime, room)


async def arm_current_prompt(runtime: "WavelengthRuntime", room: "Room") -> None:
    game = room.game
    if game is None:
        return
    prompt_id = game.current_prompt_id
    if prompt_id is None:
        return
    clue = game.clues.get(prompt_id)
    if clue is None:
        return

    game.guess_value = GUESS_START_VALUE
    game.revealed = False
    game.ready_voters = set()

    await runtime._broadcast(room, build_guess_prompt_payload(room, game, prompt_id, clue))
    await runtime._broadcast(room, build_guess_state_payload(game, prompt_id, None))
    await runtime._broadcast(room, build_ready_state_payload(room, game, prompt_id))

    await runtime._maybe_reveal(room)


async def advance_guess(runtime: "WavelengthRuntime", room: "Room") -> None:
    game = room.game
    if game is None or game.phase != "guess" or not game.revealed:
        return

    game.current_index += 1

    if game.current_index >= len(game.guess_order):
        game.phase = "over"
        game.over_reason = "finished"
        logger.info(
            "[PHASE] room=%s guess->over reason=finished score=%s/%s",
            room.code,
            game.score,
            game.max_score,
        )
        await runtime._broadcast(room, build_game_over_payload(game))
        await runtime._broadcast_state(room)
        return

    await runtime._broadcast_state(room)
    await arm_current_prompt(runtime, room)


async def reset_to_lobby(runtime: "WavelengthRuntime", room: "Room") -> None:
    game = room.game
    if game is None:
        return

    runtime._cancel_write_timer(game)
    room.game = None
    logger.info("[PHASE] room=%s %s->lobby", room.code, game.phase)

    await runtime._broadcast(room, {"type": "phase:lobby", "roomCode": room.code})
    await runtime._broadcast_state(room)

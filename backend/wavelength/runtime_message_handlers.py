from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .runtime_guess_flow import cast_ready_vote, submit_clue, update_guess
from .runtime_phase_flow import advance_guess, reset_to_lobby, start_write_phase

if TYPE_CHECKING:
    from .runtime import WavelengthRuntime
    from .runtime_types import Room

HOST_ONLY_MESSAGES = frozenset({"game:start", "game:restart", "guess:next", "game:to_lobby"})


async def handle_message(
    runtime: "WavelengthRuntime",
    room: "Room",
    peer_id: str,
    data: dict[str, Any],
) -> None:
    """Apply one inbound message to a room. Caller holds ``room.lock``.

    Anything that fails a phase or identity check is dropped without a reply.
    """
    message_type = data.get("type")

    if peer_id not in room.players:
        return
    if message_type in HOST_ONLY_MESSAGES and peer_id != room.host_id:
        return

    if message_type == "game:start":
        if room.game is not None:
            return
        await start_write_phase(runtime, room)
        return

    if message_type == "game:restart":
        if room.game is None:
            return
        await start_write_phase(runtime, room)
        return

    if message_type == "game:to_lobby":
        await reset_to_lobby(runtime, room)
        return

    if message_type == "guess:next":
        await advance_guess(runtime, room)
        return

    if message_type == "write:submit":
        await submit_clue(runtime, room, peer_id, data.get("promptId"), data.get("clueText"))
        return

    if message_type == "guess:update":
        await update_guess(runtime, room, peer_id, data.get("promptId"), data.get("guessValue"))
        return

    if message_type == "guess:ready":
        await cast_ready_vote(runtime, room, peer_id, data.get("promptId"))
        return

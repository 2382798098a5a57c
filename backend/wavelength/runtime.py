from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from .runtime_assignments import drop_player_assignments
from .runtime_guess_flow import maybe_reveal as maybe_reveal_room_prompt
from .runtime_message_handlers import handle_message as handle_room_message
from .runtime_phase_flow import on_write_deadline as on_room_write_deadline
from .runtime_phase_flow import start_guess_phase as start_room_guess_phase
from .runtime_scoring import score_from_distance
from .runtime_state_sync import (
    build_assignments_payload,
    build_game_over_payload,
    build_guess_prompt_payload,
    build_guess_state_payload,
    build_ready_state_payload,
    build_reveal_payload,
    build_state_payload,
)
from .runtime_types import Game, Room
from .runtime_utils import normalize_room_code, now_ms, random_id, sanitize_player_name

logger = logging.getLogger(__name__)

JOIN_ATTEMPTS = 3


class WavelengthRuntime:
    def __init__(self) -> None:
        self.rooms: dict[str, Room] = {}
        self.rooms_lock = asyncio.Lock()
        self.connections: dict[str, WebSocket] = {}
        self._ws_stats: dict[str, int] = {
            "connectAttempts": 0,
            "connectSuccess": 0,
            "disconnects": 0,
            "sendFailures": 0,
            "messageReceived": 0,
            "pingReceived": 0,
            "hostReassigned": 0,
            "roomsCreated": 0,
            "roomsRemoved": 0,
            "activeConnections": 0,
            "peakConnections": 0,
        }

    @property
    def active_rooms_count(self) -> int:
        return len(self.rooms)

    def _increment_stat(self, key: str, amount: int = 1) -> None:
        self._ws_stats[key] = int(self._ws_stats.get(key, 0)) + amount

    def _on_connect(self) -> None:
        self._increment_stat("connectSuccess")
        active_connections = int(self._ws_stats.get("activeConnections", 0)) + 1
        self._ws_stats["activeConnections"] = active_connections
        if active_connections > int(self._ws_stats.get("peakConnections", 0)):
            self._ws_stats["peakConnections"] = active_connections

    def _on_disconnect(self) -> None:
        self._increment_stat("disconnects")
        active_connections = max(0, int(self._ws_stats.get("activeConnections", 0)) - 1)
        self._ws_stats["activeConnections"] = active_connections

    def _mark_state_changed(self, room: Room) -> None:
        room.state_version = max(1, int(room.state_version or 1) + 1)

    def _log_ws_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "ws.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    async def get_ws_stats(self) -> dict[str, Any]:
        async with self.rooms_lock:
            room_summaries = [
                {
                    "roomCode": room.code,
                    "players": len(room.players),
                    "phase": room.phase,
                }
                for room in self.rooms.values()
            ]
            active_rooms = len(room_summaries)

        room_summaries.sort(key=lambda item: int(item.get("players", 0)), reverse=True)

        return {
            "generatedAt": now_ms(),
            "activeRooms": active_rooms,
            "stats": dict(self._ws_stats),
            "rooms": room_summaries[:50],
        }

    async def get_room_snapshot(self, room_code: str) -> dict[str, Any] | None:
        code = normalize_room_code(room_code)
        async with self.rooms_lock:
            room = self.rooms.get(code)
        if room is None:
            return None

        async with room.lock:
            if room.closed:
                return None
            return build_state_payload(room, now_ms=now_ms)

    async def shutdown(self) -> None:
        async with self.rooms_lock:
            rooms = list(self.rooms.values())
            self.rooms.clear()

        for room in rooms:
            async with room.lock:
                if room.game is not None:
                    self._cancel_write_timer(room.game)
                room.closed = True

        self.connections.clear()
        self._ws_stats["activeConnections"] = 0

    # ---- Transport ----

    async def handle_websocket(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._increment_stat("connectAttempts")

        peer_id = random_id()
        self.connect(peer_id, websocket)
        await self._send_safe(
            websocket,
            {"type": "connected", "peerId": peer_id, "serverTime": now_ms()},
            peer_id=peer_id,
        )
        self._log_ws_event("connect", peerId=peer_id)

        disconnect_code: int | None = None
        disconnect_reason = "unknown"

        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    data = json.loads(raw)
                except ValueError:
                    # Includes JSONDecodeError and the int digit limit.
                    continue
                if not isinstance(data, dict):
                    continue
                self._increment_stat("messageReceived")
                await self.dispatch(peer_id, data)
        except WebSocketDisconnect as exc:
            disconnect_code = exc.code
            disconnect_reason = "websocket_disconnect"
        except Exception:
            disconnect_reason = "server_error"
            logger.exception("Unexpected websocket error for peer %s", peer_id)
        finally:
            await self.disconnect(peer_id, reason=disconnect_reason, close_code=disconnect_code)

    def connect(self, peer_id: str, websocket: WebSocket) -> None:
        self.connections[peer_id] = websocket
        self._on_connect()

    async def dispatch(self, peer_id: str, data: dict[str, Any]) -> None:
        message_type = data.get("type")

        if message_type == "ping":
            self._increment_stat("pingReceived")
            websocket = self.connections.get(peer_id)
            if websocket is not None:
                await self._send_safe(
                    websocket,
                    {"type": "pong", "serverTime": now_ms()},
                    peer_id=peer_id,
                )
            return

        room_code = normalize_room_code(data.get("roomCode"))
        if not room_code:
            return

        if message_type == "room:join":
            await self.join_room(peer_id, room_code, data.get("name"))
            return

        async with self.rooms_lock:
            room = self.rooms.get(room_code)
        if room is None:
            return

        async with room.lock:
            if room.closed:
                return
            await handle_room_message(self, room, peer_id, data)

    async def join_room(self, peer_id: str, room_code: str, raw_name: Any) -> Room | None:
        code = normalize_room_code(room_code)
        if not code:
            return None
        name = sanitize_player_name(raw_name)

        for _ in range(JOIN_ATTEMPTS):
            room = await self._get_or_create_room(code)
            async with room.lock:
                if room.closed:
                    continue
                if peer_id not in self.connections:
                    # Connection went away while waiting for the room.
                    return None

                is_new_player = peer_id not in room.players
                room.players[peer_id] = name
                if room.host_id is None:
                    room.host_id = peer_id

                self._log_ws_event(
                    "join",
                    roomCode=code,
                    peerId=peer_id,
                    rename=not is_new_player,
                    isHost=room.host_id == peer_id,
                    players=len(room.players),
                )
                await self._broadcast_state(room)
                await self._send_catchup(room, peer_id)
                if is_new_player:
                    await self._broadcast_ready_tally(room, skip_peer_id=peer_id)
                return room

        logger.warning("join gave up room=%s peer=%s", code, peer_id)
        return None

    async def disconnect(
        self,
        peer_id: str,
        reason: str = "unknown",
        close_code: int | None = None,
    ) -> None:
        if self.connections.pop(peer_id, None) is None:
            return
        self._on_disconnect()

        async with self.rooms_lock:
            rooms = list(self.rooms.values())

        for room in rooms:
            async with room.lock:
                if room.closed or peer_id not in room.players:
                    continue
                await self._leave_room(room, peer_id)

        self._log_ws_event("disconnect", peerId=peer_id, reason=reason, closeCode=close_code)

    async def _leave_room(self, room: Room, peer_id: str) -> None:
        was_host = room.host_id == peer_id
        room.players.pop(peer_id, None)

        game = room.game
        if game is not None:
            if game.phase == "write":
                drop_player_assignments(game, peer_id)
            game.ready_voters.discard(peer_id)

        if was_host:
            self._assign_new_host(room, peer_id)

        if not room.players:
            await self._remove_room(room)
            return

        await self._broadcast_state(room)

        if game is None or room.game is not game:
            return
        if game.phase == "write" and len(game.clues) >= game.total_prompts:
            await start_room_guess_phase(self, room, "all_ready")
        elif game.phase == "guess":
            await self._broadcast_ready_tally(room)
            await self._maybe_reveal(room)

    def _assign_new_host(self, room: Room, old_host_id: str) -> str | None:
        room.host_id = next(iter(room.players), None)
        if room.host_id is None:
            return None
        self._increment_stat("hostReassigned")
        logger.warning(
            "[HOST_REASSIGNED] room=%s old_host=%s new_host=%s phase=%s",
            room.code,
            old_host_id,
            room.host_id,
            room.phase,
        )
        return room.host_id

    # ---- Registry ----

    async def _get_or_create_room(self, room_code: str) -> Room:
        async with self.rooms_lock:
            existing = self.rooms.get(room_code)
            if existing is not None and not existing.closed:
                return existing

            room = Room(code=room_code)
            self.rooms[room_code] = room
            self._increment_stat("roomsCreated")
            self._log_ws_event("room_created", roomCode=room_code)
            return room

    async def _remove_room(self, room: Room) -> None:
        # Caller holds room.lock; no path takes room.lock while holding rooms_lock.
        if room.game is not None:
            self._cancel_write_timer(room.game)
        room.closed = True
        async with self.rooms_lock:
            if self.rooms.get(room.code) is room:
                self.rooms.pop(room.code, None)
        self._increment_stat("roomsRemoved")
        self._log_ws_event("room_empty", roomCode=room.code)

    # ---- Delivery ----

    async def _send_safe(
        self,
        websocket: WebSocket,
        data: dict[str, Any],
        room_code: str | None = None,
        peer_id: str | None = None,
    ) -> None:
        try:
            await websocket.send_json(data)
        except Exception as exc:
            # Connection may already be closed.
            self._increment_stat("sendFailures")
            logger.debug(
                "[SEND_FAIL] room=%s peer=%s reason=%s",
                room_code or "-",
                peer_id or "-",
                repr(exc),
            )

    async def _send_to_peer(self, room: Room, peer_id: str, data: dict[str, Any]) -> None:
        websocket = self.connections.get(peer_id)
        if websocket is None:
            return
        await self._send_safe(websocket, data, room_code=room.code, peer_id=peer_id)

    async def _broadcast(self, room: Room, data: dict[str, Any]) -> None:
        for peer_id in list(room.players.keys()):
            await self._send_to_peer(room, peer_id, data)

    async def _broadcast_state(self, room: Room) -> None:
        self._mark_state_changed(room)
        await self._broadcast(room, build_state_payload(room, now_ms=now_ms))

    async def _broadcast_ready_tally(self, room: Room, skip_peer_id: str | None = None) -> None:
        game = room.game
        if game is None or game.phase != "guess" or game.revealed:
            return
        prompt_id = game.current_prompt_id
        if prompt_id is None:
            return

        payload = build_ready_state_payload(room, game, prompt_id)
        for peer_id in list(room.players.keys()):
            if peer_id != skip_peer_id:
                await self._send_to_peer(room, peer_id, payload)

    async def _send_catchup(self, room: Room, peer_id: str) -> None:
        game = room.game
        if game is None:
            return

        if game.phase == "write":
            prompts = game.assignments.get(peer_id)
            if prompts:
                await self._send_to_peer(room, peer_id, build_assignments_payload(room, prompts))
            return

        if game.phase == "over":
            await self._send_to_peer(room, peer_id, build_game_over_payload(game))
            return

        prompt_id = game.current_prompt_id
        clue = game.clues.get(prompt_id) if prompt_id else None
        if prompt_id is None or clue is None:
            return

        await self._send_to_peer(room, peer_id, build_guess_prompt_payload(room, game, prompt_id, clue))
        await self._send_to_peer(room, peer_id, build_guess_state_payload(game, prompt_id, None))
        await self._send_to_peer(room, peer_id, build_ready_state_payload(room, game, prompt_id))
        if game.revealed:
            distance = abs(game.guess_value - clue.target)
            await self._send_to_peer(
                room,
                peer_id,
                build_reveal_payload(
                    game,
                    prompt_id,
                    clue,
                    distance=distance,
                    points=score_from_distance(distance),
                ),
            )

    # ---- Write deadline ----

    def _cancel_write_timer(self, game: Game) -> None:
        task = game.write_timer
        game.write_timer = None
        # The deadline callback itself ends the write phase; never cancel the running task.
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _schedule_write_timer(self, room: Room, game: Game, delay_ms: int) -> None:
        self._cancel_write_timer(game)
        delay_s = max(0.12, (delay_ms or 0) / 1000)

        async def runner() -> None:
            try:
                await asyncio.sleep(delay_s)
            except asyncio.CancelledError:
                return
            async with room.lock:
                await self._on_write_deadline(room, game)

        game.write_timer = asyncio.create_task(runner(), name=f"{room.code}:write")

    async def _on_write_deadline(self, room: Room, game: Game) -> None:
        await on_room_write_deadline(self, room, game)

    async def _maybe_reveal(self, room: Room) -> bool:
        return await maybe_reveal_room_prompt(self, room)


runtime = WavelengthRuntime()

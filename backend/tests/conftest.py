from __future__ import annotations

from typing import Any

import pytest

from wavelength.runtime import WavelengthRuntime


class FakeWebSocket:
    """Records everything the runtime sends to one participant."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, data: dict[str, Any]) -> None:
        self.sent.append(data)

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [message for message in self.sent if message.get("type") == message_type]

    def last(self, message_type: str) -> dict[str, Any] | None:
        messages = self.of_type(message_type)
        return messages[-1] if messages else None

    def clear(self) -> None:
        self.sent.clear()


class ClosedWebSocket(FakeWebSocket):
    async def send_json(self, data: dict[str, Any]) -> None:
        raise RuntimeError("socket closed")


class RoomHarness:
    def __init__(self, runtime: WavelengthRuntime) -> None:
        self.runtime = runtime
        self.sockets: dict[str, FakeWebSocket] = {}

    def connect(self, websocket: FakeWebSocket | None = None) -> str:
        peer_id = f"peer-{len(self.sockets) + 1}"
        socket = websocket or FakeWebSocket()
        self.sockets[peer_id] = socket
        self.runtime.connect(peer_id, socket)  # type: ignore[arg-type]
        return peer_id

    async def join(self, room_code: str, name: str, peer_id: str | None = None) -> str:
        peer_id = peer_id or self.connect()
        await self.runtime.dispatch(peer_id, {"type": "room:join", "roomCode": room_code, "name": name})
        return peer_id

    async def send(self, peer_id: str, message_type: str, room_code: str, **fields: Any) -> None:
        await self.runtime.dispatch(peer_id, {"type": message_type, "roomCode": room_code, **fields})

    async def leave(self, peer_id: str) -> None:
        await self.runtime.disconnect(peer_id, reason="test")

    async def submit_all(self, room_code: str, peer_id: str) -> None:
        room = self.runtime.rooms[room_code]
        assert room.game is not None
        for prompt in list(room.game.assignments.get(peer_id, [])):
            await self.send(
                peer_id,
                "write:submit",
                room_code,
                promptId=prompt.prompt_id,
                clueText=f"clue for {prompt.scale['id']}",
            )

    def ws(self, peer_id: str) -> FakeWebSocket:
        return self.sockets[peer_id]


@pytest.fixture()
def wave_runtime() -> WavelengthRuntime:
    return WavelengthRuntime()


@pytest.fixture()
def harness(wave_runtime: WavelengthRuntime) -> RoomHarness:
    return RoomHarness(wave_runtime)


@pytest.fixture()
def closed_socket() -> ClosedWebSocket:
    return ClosedWebSocket()

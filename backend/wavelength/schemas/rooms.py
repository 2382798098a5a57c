from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class PlayerSummary(BaseModel):
    id: str
    name: str


class RoomSnapshotResponse(BaseModel):
    roomCode: str
    hostId: str | None = None
    players: list[PlayerSummary] = Field(default_factory=list)
    phase: Literal["lobby", "write", "guess", "over"]
    score: int = 0
    maxScore: int | None = None
    writeEndsAt: int | None = None
    writeDurationMs: int | None = None
    readyCount: int = 0
    totalPrompts: int = 0
    guessIndex: int = 0
    guessTotal: int = 0
    stateVersion: int = 1
    serverTime: int


class ScaleCatalogResponse(BaseModel):
    count: int
    scales: list[dict[str, Any]]

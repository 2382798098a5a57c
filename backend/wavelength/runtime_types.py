from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Literal

Phase = Literal["lobby", "write", "guess", "over"]
GamePhase = Literal["write", "guess", "over"]
OverReason = Literal["no_clues", "finished"]
GuessTrigger = Literal["timer", "all_ready"]


@dataclass
class Prompt:
    prompt_id: str
    scale: dict[str, Any]
    target: int


@dataclass
class Clue:
    author_id: str
    author_name: str
    scale: dict[str, Any]
    target: int
    clue_text: str


@dataclass
class Game:
    phase: GamePhase = "write"
    write_ends_at: int | None = None
    write_duration_ms: int | None = None
    write_timer: asyncio.Task[None] | None = None
    assignments: dict[str, list[Prompt]] = field(default_factory=dict)
    clues: dict[str, Clue] = field(default_factory=dict)
    guess_order: list[str] = field(default_factory=list)
    current_index: int = 0
    score: int = 0
    max_score: int | None = None
    guess_value: int | float = 50
    revealed: bool = False
    ready_voters: set[str] = field(default_factory=set)
    over_reason: OverReason | None = None

    @property
    def total_prompts(self) -> int:
        return sum(len(prompts) for prompts in self.assignments.values())

    @property
    def current_prompt_id(self) -> str | None:
        if self.phase != "guess":
            return None
        if 0 <= self.current_index < len(self.guess_order):
            return self.guess_order[self.current_index]
        return None


@dataclass
class Room:
    code: str
    players: dict[str, str] = field(default_factory=dict)
    host_id: str | None = None
    game: Game | None = None
    state_version: int = 1
    closed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def phase(self) -> Phase:
        if self.game is None:
            return "lobby"
        return self.game.phase

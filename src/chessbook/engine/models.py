"""Engine session data models and configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum, auto
from typing import Any

MIN_DEPTH = 1
MAX_DEPTH = 30
DEFAULT_DEPTH = 20
MATE_SCORE_CP = 100_000


class SessionState(IntEnum):
    """Finite-state-machine states of an :class:`EngineSession`."""

    UNINITIALIZED = auto()
    HANDSHAKE_PENDING = auto()
    READY = auto()
    ANALYZING = auto()
    TERMINATED = auto()


def clamp_depth(depth: int) -> int:
    """Limit a search depth to the supported range."""
    return max(MIN_DEPTH, min(int(depth), MAX_DEPTH))


@dataclass
class EngineConfig:
    """Engine settings supplied by the caller.

    Persistence is the caller's business: store :meth:`to_mapping` anywhere
    and rebuild with :meth:`from_mapping`.
    """

    command: list[str] = field(default_factory=lambda: ["stockfish"])
    depth: int = DEFAULT_DEPTH
    multipv: int = 1
    options: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.depth = clamp_depth(self.depth)
        self.multipv = max(1, int(self.multipv))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> EngineConfig:
        """Merge saved values over the defaults; unknown keys are ignored."""
        config = cls()
        if not data:
            return config
        command = data.get("command")
        if isinstance(command, str):
            config.command = command.split()
        elif isinstance(command, (list, tuple)) and command:
            config.command = [str(part) for part in command]
        if "depth" in data:
            config.depth = clamp_depth(data["depth"])
        if "multipv" in data:
            config.multipv = max(1, int(data["multipv"]))
        options = data.get("options")
        if isinstance(options, Mapping):
            config.options = {str(k): str(v) for k, v in options.items()}
        return config

    def to_mapping(self) -> dict[str, Any]:
        return {
            "command": list(self.command),
            "depth": self.depth,
            "multipv": self.multipv,
            "options": dict(self.options),
        }


@dataclass(slots=True, frozen=True)
class EngineVariant:
    """One ranked line reported by the engine for the analysed position.

    ``score_cp`` is from the side to move's point of view. Mate scores keep
    their distance in ``mate`` and map ``score_cp`` to ``±MATE_SCORE_CP``
    minus the distance so variants still order by strength.
    """

    rank: int
    score_cp: int
    depth: int
    moves: tuple[str, ...]
    mate: int | None = None

    @property
    def pawns(self) -> float:
        return self.score_cp / 100

    @property
    def first_move(self) -> str | None:
        return self.moves[0] if self.moves else None

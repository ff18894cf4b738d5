"""PositionTimeline: index-aligned record of moves and resulting positions."""

from __future__ import annotations

from collections.abc import Iterable

from chessbook.core.rules import DEFAULT_RULES, IRulesEngine, Position
from chessbook.errors import IndexOutOfRange


class PositionTimeline:
    """Moves of one line together with the position after each of them.

    ``positions[0]`` is the start position and ``positions[i + 1]`` the
    position after ply ``i``. The timeline is a cache derived through the
    rules engine; it is only ever extended by :meth:`append_move`.

    Not thread-safe: one owner performs all mutations.
    """

    __slots__ = ("_rules", "_positions", "_moves", "_cursor")

    def __init__(
        self,
        start_fen: str | None = None,
        *,
        rules: IRulesEngine | None = None,
    ) -> None:
        self._rules = rules or DEFAULT_RULES
        if start_fen is None:
            start = self._rules.initial_position()
        else:
            start = self._rules.position_from_fen(start_fen)
        self._positions: list[Position] = [start]
        self._moves: list[str] = []
        self._cursor = -1

    @classmethod
    def from_moves(
        cls,
        moves: Iterable[str],
        start_fen: str | None = None,
        *,
        rules: IRulesEngine | None = None,
    ) -> PositionTimeline:
        """Replay *moves* from the start position; the cursor ends on the last ply.

        Raises :class:`~chessbook.errors.MoveRejected` at the first move the
        rules engine refuses.
        """
        timeline = cls(start_fen, rules=rules)
        for move in moves:
            timeline.append_move(move)
        return timeline

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def positions(self) -> tuple[Position, ...]:
        return tuple(self._positions)

    @property
    def moves(self) -> tuple[str, ...]:
        return tuple(self._moves)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def last_ply(self) -> int:
        return len(self._moves) - 1

    @property
    def start_position(self) -> Position:
        return self._positions[0]

    @property
    def current_position(self) -> Position:
        return self._positions[self._cursor + 1]

    @property
    def current_move(self) -> str | None:
        """SAN of the ply under the cursor, ``None`` at the start position."""
        if self._cursor < 0:
            return None
        return self._moves[self._cursor]

    @property
    def is_at_end(self) -> bool:
        return self._cursor == self.last_ply

    def __len__(self) -> int:
        return len(self._moves)

    # ── Mutation ─────────────────────────────────────────────────────────

    def append_move(self, move: str) -> str:
        """Play *move* (SAN or coordinate notation) from the cursor position.

        Any continuation after the cursor is discarded first, so playing a
        move from an earlier ply starts a new branch. Returns the SAN of the
        accepted move. On refusal the rules engine raises
        :class:`~chessbook.errors.MoveRejected` and the timeline is unchanged.
        """
        position, san = self._rules.apply_move(self.current_position, move)

        keep = self._cursor + 1
        del self._moves[keep:]
        del self._positions[keep + 1 :]

        self._moves.append(san)
        self._positions.append(position)
        self._cursor = len(self._moves) - 1
        return san

    def reset(self, start_fen: str | None = None) -> None:
        """Clear back to a lone start position (optionally a new one)."""
        if start_fen is None:
            start = self._positions[0]
        else:
            start = self._rules.position_from_fen(start_fen)
        self._positions = [start]
        self._moves = []
        self._cursor = -1

    # ── Navigation ───────────────────────────────────────────────────────

    def goto_ply(self, index: int) -> Position:
        """Move the cursor to *index* (``-1`` is the start position)."""
        if not -1 <= index <= self.last_ply:
            raise IndexOutOfRange(index, self.last_ply)
        self._cursor = index
        return self._positions[index + 1]

    def step_back(self) -> bool:
        if self._cursor < 0:
            return False
        self._cursor -= 1
        return True

    def step_forward(self) -> bool:
        if self._cursor >= self.last_ply:
            return False
        self._cursor += 1
        return True

    def goto_start(self) -> Position:
        return self.goto_ply(-1)

    def goto_end(self) -> Position:
        return self.goto_ply(self.last_ply)

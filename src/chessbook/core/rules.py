"""Rules-engine collaborator backed by python-chess.

Positions are plain FEN strings normalized by the library, so they are
immutable and compare exactly. Nothing in chessbook inspects a position
beyond what this module exposes.
"""

from __future__ import annotations

import re
from typing import Protocol

import chess

from chessbook.errors import MoveRejected

Position = str

STARTING_FEN: Position = chess.STARTING_FEN

_COORDINATE_MOVE_RE = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")


def is_coordinate_move(text: str) -> bool:
    """Return True for engine-native moves such as ``e2e4`` or ``e7e8q``."""
    return _COORDINATE_MOVE_RE.match(text) is not None


class IRulesEngine(Protocol):
    """Operations the core needs from a chess-rules implementation."""

    def initial_position(self) -> Position: ...

    def apply_move(self, position: Position, move: str) -> tuple[Position, str]: ...

    def position_to_fen(self, position: Position) -> str: ...

    def position_from_fen(self, fen: str) -> Position: ...

    def is_white_to_move(self, position: Position) -> bool: ...

    def fullmove_number(self, position: Position) -> int: ...


class ChessRules:
    """:class:`IRulesEngine` implementation on top of :class:`chess.Board`."""

    __slots__ = ()

    def initial_position(self) -> Position:
        return STARTING_FEN

    def apply_move(self, position: Position, move: str) -> tuple[Position, str]:
        """Play *move* (SAN or coordinate notation) and return ``(fen, san)``.

        Raises :class:`MoveRejected` when the move is malformed, ambiguous or
        illegal in *position*.
        """
        board = chess.Board(position)
        text = move.strip()
        try:
            if is_coordinate_move(text):
                parsed = board.parse_uci(text)
            else:
                parsed = board.parse_san(text)
        except chess.IllegalMoveError as exc:
            raise MoveRejected(move, position, "illegal move") from exc
        except chess.AmbiguousMoveError as exc:
            raise MoveRejected(move, position, "ambiguous move") from exc
        except ValueError as exc:
            raise MoveRejected(move, position, "invalid move") from exc

        # parse_san accepts null move spellings such as "--" and "0000".
        if not parsed:
            raise MoveRejected(move, position, "null move")

        san = board.san(parsed)
        board.push(parsed)
        return board.fen(), san

    def position_to_fen(self, position: Position) -> str:
        return chess.Board(position).fen()

    def position_from_fen(self, fen: str) -> Position:
        """Validate and normalize *fen*; raises ``ValueError`` when invalid."""
        board = chess.Board(fen.strip())
        if not board.is_valid():
            raise ValueError(f"Invalid FEN position: {fen!r}")
        return board.fen()

    def is_white_to_move(self, position: Position) -> bool:
        return chess.Board(position).turn == chess.WHITE

    def fullmove_number(self, position: Position) -> int:
        return chess.Board(position).fullmove_number


DEFAULT_RULES: IRulesEngine = ChessRules()

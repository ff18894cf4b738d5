"""Exception taxonomy shared by the notation, game and engine layers."""

from __future__ import annotations


class ChessbookError(Exception):
    """Base class for all errors raised by chessbook."""


class PgnSyntaxError(ChessbookError, ValueError):
    """Annotated PGN text could not be tokenized.

    ``token`` is the offending text (empty for end-of-input errors) and
    ``offset`` its character offset inside the movetext body.
    """

    def __init__(self, message: str, *, token: str = "", offset: int = -1) -> None:
        super().__init__(message)
        self.token = token
        self.offset = offset


class MoveRejected(ChessbookError):
    """The rules engine refused a move for the given position."""

    def __init__(self, move: str, fen: str, reason: str = "illegal move") -> None:
        super().__init__(f"{reason}: {move!r} in {fen}")
        self.move = move
        self.fen = fen
        self.reason = reason


class IndexOutOfRange(ChessbookError, IndexError):
    """Timeline navigation past its bounds."""

    def __init__(self, index: int, last_ply: int) -> None:
        super().__init__(f"ply {index} outside [-1, {last_ply}]")
        self.index = index
        self.last_ply = last_ply


class EngineError(ChessbookError):
    """Base class for engine session failures."""


class SessionTerminated(EngineError):
    """The session was terminated and accepts no further commands."""


class TransportLost(EngineError):
    """The engine process crashed, exited or could not be started."""


class EngineStateError(EngineError):
    """An operation was issued from a session state that does not allow it."""

"""Core domain layer: the rules-engine adapter and annotated PGN codec.

Quick start::

    from chessbook.core import decode, encode

    moves, comments = decode("1. e4 e5 2. Nf3 {develops} Nc6")
    print(encode(moves, comments))
"""

from chessbook.core.notation import (
    AnnotationStore,
    ParsedPgn,
    build_document,
    decode,
    decode_document,
    encode,
)
from chessbook.core.rules import (
    DEFAULT_RULES,
    STARTING_FEN,
    ChessRules,
    IRulesEngine,
    Position,
    is_coordinate_move,
)

__all__ = [
    # Rules collaborator
    "DEFAULT_RULES",
    "STARTING_FEN",
    "ChessRules",
    "IRulesEngine",
    "Position",
    "is_coordinate_move",
    # Notation
    "AnnotationStore",
    "ParsedPgn",
    "build_document",
    "decode",
    "decode_document",
    "encode",
]

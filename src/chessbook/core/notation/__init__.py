"""Notation package: annotated PGN parsing and serialization."""

from chessbook.core.notation.models import AnnotationStore, ParsedPgn, strip_clock_annotations
from chessbook.core.notation.pgn import (
    build_document,
    decode,
    decode_document,
    encode,
    encode_movetext,
    is_san_token,
    parse_header_tags,
    split_headers,
)

__all__ = [
    "AnnotationStore",
    "ParsedPgn",
    "build_document",
    "decode",
    "decode_document",
    "encode",
    "encode_movetext",
    "is_san_token",
    "parse_header_tags",
    "split_headers",
    "strip_clock_annotations",
]

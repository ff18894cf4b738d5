"""Annotated PGN decoding and encoding.

The decoder is a two-state tokenizer (outside / inside a ``{...}`` comment)
over the movetext body. A comment belongs to the ply parsed just before it.
Move legality is not checked here; replay the decoded moves through
:class:`chessbook.game.timeline.PositionTimeline` for that.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from enum import IntEnum, auto

from chessbook.core.notation.models import AnnotationStore, ParsedPgn, strip_clock_annotations
from chessbook.errors import PgnSyntaxError

_PGN_HEADER_RE = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]\s*$')
_PGN_RESULT_TOKENS = frozenset({"1-0", "0-1", "1/2-1/2", "*"})
_MOVE_NUMBER_RE = re.compile(r"^\d+\.(?:\.\.)?$")
_NAG_RE = re.compile(r"^\$\d+$")
_SAN_RE = re.compile(
    r"^(?:"
    r"[KQRBN][a-h]?[1-8]?x?[a-h][1-8]"
    r"|[a-h](?:x[a-h])?[1-8](?:=?[QRBN])?"
    r"|[O0]-[O0](?:-[O0])?"
    r")[+#]?$"
)
_GLYPH_SUFFIX_RE = re.compile(r"[!?]+$")

_OUTSIDE_TOKEN_RE = re.compile(
    r"\s*(?:(?P<open>\{)|(?P<close>\})|(?P<number>\d+\.(?:\.\.)?)|(?P<word>[^\s{}]+))"
)
_INSIDE_TOKEN_RE = re.compile(r"\s*(?:(?P<close>\})|(?P<word>[^\s}]+))")


class _State(IntEnum):
    OUTSIDE_COMMENT = auto()
    INSIDE_COMMENT = auto()


def is_san_token(token: str) -> bool:
    """Return True when *token* fits the SAN move grammar (glyphs allowed)."""
    return _SAN_RE.match(_GLYPH_SUFFIX_RE.sub("", token)) is not None


def split_headers(text: str) -> tuple[tuple[str, ...], str]:
    """Split *text* into its leading header lines and the movetext body."""
    lines = text.splitlines()
    headers: list[str] = []
    idx = 0
    while idx < len(lines):
        line = lines[idx].strip()
        if line.startswith("["):
            headers.append(line)
        elif line:
            break
        idx += 1
    return tuple(headers), "\n".join(lines[idx:])


def parse_header_tags(headers: Sequence[str]) -> dict[str, str]:
    """Read ``[Key "Value"]`` pairs; lines of any other shape are skipped."""
    tags: dict[str, str] = {}
    for line in headers:
        match = _PGN_HEADER_RE.match(line)
        if match is None:
            continue
        key, raw_value = match.groups()
        tags[key] = raw_value.replace('\\"', '"').replace("\\\\", "\\")
    return tags


def decode_document(text: str) -> ParsedPgn:
    """Parse annotated PGN *text* into moves, comments and header lines.

    Raises :class:`PgnSyntaxError` for an unterminated or stray brace and
    for any token outside a comment that is not a move number, SAN move,
    result token or ``$n`` glyph.
    """
    headers, body = split_headers(text)
    moves: list[str] = []
    comments = AnnotationStore()
    preamble: list[str] = []
    result: str | None = None

    state = _State.OUTSIDE_COMMENT
    accumulator: list[str] = []
    comment_start = -1
    pos = 0
    total = len(body)

    while pos < total:
        if state == _State.OUTSIDE_COMMENT:
            match = _OUTSIDE_TOKEN_RE.match(body, pos)
            if match is None:
                break  # only trailing whitespace left
            pos = match.end()
            kind = match.lastgroup
            token = match.group(kind)
            offset = match.start(kind)

            if kind == "open":
                state = _State.INSIDE_COMMENT
                accumulator = []
                comment_start = offset
            elif kind == "close":
                raise PgnSyntaxError(
                    f"Unexpected '}}' at offset {offset}", token=token, offset=offset
                )
            elif kind == "number":
                continue
            elif token in _PGN_RESULT_TOKENS:
                result = token
            elif _NAG_RE.match(token):
                continue
            elif is_san_token(token):
                moves.append(_GLYPH_SUFFIX_RE.sub("", token))
            elif token.startswith("("):
                raise PgnSyntaxError(
                    f"Variations are not supported (offset {offset})",
                    token=token,
                    offset=offset,
                )
            else:
                raise PgnSyntaxError(
                    f"Unrecognized token {token!r} at offset {offset}",
                    token=token,
                    offset=offset,
                )
            continue

        match = _INSIDE_TOKEN_RE.match(body, pos)
        if match is None:
            break
        pos = match.end()
        if match.lastgroup == "word":
            accumulator.append(match.group("word"))
            continue

        comment = strip_clock_annotations(" ".join(accumulator))
        if comment:
            if moves:
                comments.append(len(moves) - 1, comment)
            else:
                preamble.append(comment)
        state = _State.OUTSIDE_COMMENT

    if state == _State.INSIDE_COMMENT:
        raise PgnSyntaxError(
            f"Unterminated comment starting at offset {comment_start}",
            token="{",
            offset=comment_start,
        )

    return ParsedPgn(
        moves=moves,
        comments=comments,
        headers=headers,
        result=result,
        preamble=" ".join(preamble),
        tags=parse_header_tags(headers),
    )


def decode(text: str) -> tuple[list[str], AnnotationStore]:
    """Decode annotated PGN into ``(moves, comments)``."""
    parsed = decode_document(text)
    return parsed.moves, parsed.comments


def _comment_token(text: str) -> str:
    # PGN comments cannot contain a closing brace.
    return f"{{{text.replace('}', ']')}}}"


def encode_movetext(
    moves: Sequence[str],
    comments: Mapping[int, str],
    *,
    first_move_number: int = 1,
    white_first: bool = True,
) -> str:
    """Serialize moves played from an arbitrary start position.

    *first_move_number* and *white_first* describe the position before the
    first move, as read from its FEN. A line that starts with Black's move
    opens with ``"n... "``.
    """
    parts: list[str] = []
    move_number = first_move_number
    white_to_move = white_first
    for ply, san in enumerate(moves):
        if white_to_move:
            parts.append(f"{move_number}. ")
        elif ply == 0 or comments.get(ply - 1):
            parts.append(f"{move_number}... ")
        parts.append(san)
        comment = comments.get(ply)
        if comment:
            parts.append(f" {_comment_token(comment)}")
        parts.append(" ")
        if not white_to_move:
            move_number += 1
        white_to_move = not white_to_move
    return "".join(parts).rstrip()


def encode(moves: Sequence[str], comments: Mapping[int, str]) -> str:
    """Serialize moves and comments into canonical annotated movetext.

    Black's move number is repeated (``"2... Nc6"``) only when a comment on
    White's move interrupts the line. Comments outside the move range are
    ignored.
    """
    return encode_movetext(moves, comments)


def build_document(
    headers: Sequence[str],
    moves: Sequence[str],
    comments: Mapping[int, str],
    result: str | None = None,
    *,
    preamble: str = "",
    first_move_number: int = 1,
    white_first: bool = True,
) -> str:
    """Build a full PGN document: header lines, blank line, movetext.

    A non-empty *preamble* is written as a comment ahead of the first move.
    """
    tokens: list[str] = []
    if preamble:
        tokens.append(_comment_token(preamble))
    movetext = encode_movetext(
        moves,
        comments,
        first_move_number=first_move_number,
        white_first=white_first,
    )
    if movetext:
        tokens.append(movetext)
    if result:
        tokens.append(result)
    body = " ".join(tokens)
    if not headers:
        return body + "\n"
    return "\n".join([*headers, "", body, ""])

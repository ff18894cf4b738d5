"""AnnotatedLine: a timeline plus its comments, loadable from annotated PGN."""

from __future__ import annotations

from chessbook.core.notation import (
    AnnotationStore,
    build_document,
    decode_document,
    encode_movetext,
)
from chessbook.core.rules import DEFAULT_RULES, IRulesEngine
from chessbook.game.timeline import PositionTimeline


class AnnotatedLine:
    """One opening line the user replays and comments on.

    Keeps the :class:`AnnotationStore` consistent with the timeline: when a
    new move branches off an earlier ply, comments on the discarded
    continuation are dropped with it.
    """

    __slots__ = ("_timeline", "_comments", "_rules", "_headers", "_result", "_preamble")

    def __init__(
        self,
        timeline: PositionTimeline | None = None,
        comments: AnnotationStore | None = None,
        *,
        rules: IRulesEngine | None = None,
    ) -> None:
        self._rules = rules or DEFAULT_RULES
        if timeline is None:
            timeline = PositionTimeline(rules=self._rules)
        self._timeline = timeline
        store = comments if comments is not None else AnnotationStore()
        self._comments = store.trimmed(len(self._timeline))
        self._headers: tuple[str, ...] = ()
        self._result: str | None = None
        self._preamble = ""

    @classmethod
    def from_pgn(
        cls,
        text: str,
        *,
        rules: IRulesEngine | None = None,
    ) -> AnnotatedLine:
        """Decode annotated PGN and replay it through the rules engine.

        A ``[FEN "..."]`` tag with ``[SetUp "1"]`` selects the start position.
        Raises :class:`~chessbook.errors.PgnSyntaxError` for malformed text and
        :class:`~chessbook.errors.MoveRejected` for an illegal move.
        """
        parsed = decode_document(text)
        start_fen = None
        if parsed.tags.get("SetUp") == "1" and "FEN" in parsed.tags:
            start_fen = parsed.tags["FEN"]

        timeline = PositionTimeline.from_moves(parsed.moves, start_fen, rules=rules)
        line = cls(timeline, parsed.comments, rules=rules)
        line._headers = parsed.headers
        line._result = parsed.result
        line._preamble = parsed.preamble
        return line

    @property
    def timeline(self) -> PositionTimeline:
        return self._timeline

    @property
    def comments(self) -> AnnotationStore:
        return self._comments

    @property
    def headers(self) -> tuple[str, ...]:
        return self._headers

    @property
    def result(self) -> str | None:
        return self._result

    @property
    def preamble(self) -> str:
        return self._preamble

    def play(self, move: str) -> str:
        """Append *move* at the cursor, dropping comments of a discarded branch."""
        branch_ply = self._timeline.cursor + 1
        san = self._timeline.append_move(move)
        self._comments.drop_from(branch_ply)
        return san

    def comment_at(self, ply: int | None = None) -> str:
        """Comment of *ply* (default: the cursor ply), or ``""``."""
        target = self._timeline.cursor if ply is None else ply
        return self._comments.get(target, "")

    def set_comment(self, text: str, ply: int | None = None) -> None:
        """Attach *text* to *ply* (default: the cursor ply); blank text clears it."""
        target = self._timeline.cursor if ply is None else ply
        if not 0 <= target <= self._timeline.last_ply:
            raise ValueError(f"No move at ply {target} to comment on")
        self._comments[target] = text

    def to_movetext(self) -> str:
        """Canonical annotated movetext for the current moves and comments."""
        moves = self._timeline.moves
        first_move_number, white_first = self._start_numbering()
        return encode_movetext(
            moves,
            self._comments.trimmed(len(moves)),
            first_move_number=first_move_number,
            white_first=white_first,
        )

    def to_pgn(self) -> str:
        """Full document, re-emitting imported headers, preamble and result."""
        moves = self._timeline.moves
        first_move_number, white_first = self._start_numbering()
        return build_document(
            self._headers,
            moves,
            self._comments.trimmed(len(moves)),
            self._result,
            preamble=self._preamble,
            first_move_number=first_move_number,
            white_first=white_first,
        )

    def _start_numbering(self) -> tuple[int, bool]:
        start = self._timeline.start_position
        return self._rules.fullmove_number(start), self._rules.is_white_to_move(start)

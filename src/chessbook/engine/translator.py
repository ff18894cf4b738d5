"""Convert engine coordinate lines into SAN the timeline understands."""

from __future__ import annotations

import logging

from chessbook.core.rules import DEFAULT_RULES, IRulesEngine, Position, is_coordinate_move
from chessbook.engine.models import EngineVariant
from chessbook.errors import MoveRejected

_LOGGER = logging.getLogger(__name__)


class AnalysisResultTranslator:
    """Replays :class:`EngineVariant` move sequences through the rules engine."""

    __slots__ = ("_rules",)

    def __init__(self, rules: IRulesEngine | None = None) -> None:
        self._rules = rules or DEFAULT_RULES

    def to_playable(self, variant: EngineVariant, from_position: Position) -> list[str]:
        """SAN moves of *variant* replayed from *from_position*.

        Stops at the first move that is not a coordinate move or is illegal
        in the replayed position and returns what was converted so far; a
        stale or truncated engine line therefore never yields a bad move.
        """
        position = from_position
        sans: list[str] = []
        for move in variant.moves:
            if not is_coordinate_move(move):
                _LOGGER.debug("Stopping at non-coordinate engine move %r", move)
                break
            try:
                position, san = self._rules.apply_move(position, move)
            except MoveRejected:
                _LOGGER.debug("Stopping at illegal engine move %r in %s", move, position)
                break
            sans.append(san)
        return sans

    def format_line(self, variant: EngineVariant, from_position: Position) -> str:
        """Render the playable part of *variant* as numbered movetext."""
        sans = self.to_playable(variant, from_position)
        if not sans:
            return ""
        move_number = self._rules.fullmove_number(from_position)
        white_to_move = self._rules.is_white_to_move(from_position)

        parts: list[str] = []
        for idx, san in enumerate(sans):
            if white_to_move:
                parts.append(f"{move_number}. {san}")
            elif idx == 0:
                parts.append(f"{move_number}... {san}")
            else:
                parts.append(san)
            if not white_to_move:
                move_number += 1
            white_to_move = not white_to_move
        return " ".join(parts)

    def white_score_cp(self, variant: EngineVariant, from_position: Position) -> int:
        """Engine scores are side-to-move relative; flip them for Black."""
        if self._rules.is_white_to_move(from_position):
            return variant.score_cp
        return -variant.score_cp

    def format_score(self, variant: EngineVariant, from_position: Position) -> str:
        """Score from White's point of view: ``"+0.35"`` or ``"#-2"`` for mates."""
        white_to_move = self._rules.is_white_to_move(from_position)
        if variant.mate is not None:
            mate = variant.mate if white_to_move else -variant.mate
            return f"#{mate}"
        return f"{self.white_score_cp(variant, from_position) / 100:+.2f}"

"""Game layer: move timelines and annotated lines."""

from chessbook.core.notation import AnnotationStore
from chessbook.game.line import AnnotatedLine
from chessbook.game.timeline import PositionTimeline

__all__ = [
    "AnnotatedLine",
    "AnnotationStore",
    "PositionTimeline",
]

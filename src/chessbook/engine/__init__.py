"""Engine package: UCI analysis session, transports and result translation."""

from chessbook.engine.models import (
    DEFAULT_DEPTH,
    MAX_DEPTH,
    MIN_DEPTH,
    EngineConfig,
    EngineVariant,
    SessionState,
    clamp_depth,
)
from chessbook.engine.qt_bridge import EngineBridge
from chessbook.engine.session import AnalysisRequest, EngineSession
from chessbook.engine.translator import AnalysisResultTranslator
from chessbook.engine.transport import ITransport, QProcessTransport

__all__ = [
    "DEFAULT_DEPTH",
    "MAX_DEPTH",
    "MIN_DEPTH",
    "AnalysisRequest",
    "AnalysisResultTranslator",
    "EngineBridge",
    "EngineConfig",
    "EngineSession",
    "EngineVariant",
    "ITransport",
    "QProcessTransport",
    "SessionState",
    "clamp_depth",
]

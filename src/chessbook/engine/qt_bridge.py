"""Qt bridge exposing an :class:`EngineSession` through signals."""

from __future__ import annotations

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from chessbook.engine.models import EngineConfig, SessionState
from chessbook.engine.session import AnalysisRequest, EngineSession
from chessbook.engine.transport import ITransport, QProcessTransport
from chessbook.errors import TransportLost


class EngineBridge(QObject):
    """Owns a session for UI code that follows the current board position.

    ``analyze_position`` restarts analysis whenever the position changes and
    holds the request back until the handshake has completed.
    """

    ready = pyqtSignal()
    variants_updated = pyqtSignal(int, object)  # request_id, tuple[EngineVariant]
    analysis_settled = pyqtSignal(int, object)  # request_id, tuple[EngineVariant]
    engine_lost = pyqtSignal(str)

    __slots__ = ("_session", "_pending_fen", "_pending_multipv")

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        transport: ITransport | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        engine_config = config or EngineConfig()
        if transport is None:
            transport = QProcessTransport(engine_config.command, parent=self)
        self._session = EngineSession(
            transport,
            engine_config,
            on_ready=self._on_session_ready,
            on_lost=self._on_session_lost,
        )
        self._pending_fen: str | None = None
        self._pending_multipv: int | None = None

    @property
    def session(self) -> EngineSession:
        return self._session

    def start(self) -> None:
        """Launch the engine; ``ready`` fires once the handshake completes."""
        if self._session.state == SessionState.UNINITIALIZED:
            self._session.start()

    @pyqtSlot(str)
    def analyze_position(self, fen: str) -> None:
        """Analyse *fen*, superseding whatever is running."""
        state = self._session.state
        if state in (SessionState.UNINITIALIZED, SessionState.HANDSHAKE_PENDING):
            self._pending_fen = fen
            return
        if state == SessionState.TERMINATED:
            return
        if state == SessionState.ANALYZING:
            self._session.cancel()
        self._pending_fen = None
        self._session.analyze(
            fen,
            on_update=self._on_request_update,
            on_settled=self._on_request_settled,
        )

    @pyqtSlot()
    def stop(self) -> None:
        """Stop analysis; results of the stopped request are discarded."""
        self._pending_fen = None
        if self._session.state == SessionState.ANALYZING:
            self._session.cancel()

    @pyqtSlot(int)
    def set_line_count(self, multipv: int) -> None:
        """Change MultiPV; a running analysis restarts once the engine is ready."""
        state = self._session.state
        if state == SessionState.UNINITIALIZED:
            self._session.config.multipv = max(1, multipv)
            return
        if state == SessionState.HANDSHAKE_PENDING:
            self._pending_multipv = multipv
            return
        if state == SessionState.TERMINATED:
            return
        request = self._session.active_request
        if request is not None:
            self._pending_fen = request.fen
        self._session.reconfigure(multipv)

    def shutdown(self) -> None:
        self._pending_fen = None
        self._session.terminate()

    def _on_session_ready(self) -> None:
        if self._pending_multipv is not None:
            multipv, self._pending_multipv = self._pending_multipv, None
            if multipv != self._session.multipv:
                self._session.reconfigure(multipv)
                return
        self.ready.emit()
        if self._pending_fen is not None:
            self.analyze_position(self._pending_fen)

    def _on_session_lost(self, error: TransportLost) -> None:
        self._pending_fen = None
        self.engine_lost.emit(str(error))

    def _on_request_update(self, request: AnalysisRequest) -> None:
        self.variants_updated.emit(request.request_id, request.variants)

    def _on_request_settled(self, request: AnalysisRequest) -> None:
        self.analysis_settled.emit(request.request_id, request.variants)

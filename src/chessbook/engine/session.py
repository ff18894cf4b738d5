"""EngineSession: UCI analysis lifecycle over an asynchronous line transport.

Every ``go`` the session sends is answered by exactly one ``bestmove``, so
result lines always belong to the oldest search still waiting for its
``bestmove``. Lines of a search that is no longer the active request
(cancelled, superseded or already settled) are dropped, which keeps late
output of a stopped search out of the next request's results.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable

from chessbook.core.rules import DEFAULT_RULES
from chessbook.engine import uci
from chessbook.engine.models import EngineConfig, EngineVariant, SessionState, clamp_depth
from chessbook.engine.transport import ITransport
from chessbook.errors import EngineStateError, SessionTerminated, TransportLost

_LOGGER = logging.getLogger(__name__)

RequestCallback = Callable[["AnalysisRequest"], None]
ReadyCallback = Callable[[], None]
LostCallback = Callable[[TransportLost], None]


class AnalysisRequest:
    """Results of one ``analyze`` call, updated as engine lines stream in."""

    __slots__ = (
        "request_id",
        "fen",
        "depth",
        "multipv",
        "best_move",
        "_variants",
        "_is_settled",
        "_is_cancelled",
        "_on_update",
        "_on_settled",
    )

    def __init__(
        self,
        request_id: int,
        fen: str,
        depth: int,
        multipv: int,
        *,
        on_update: RequestCallback | None = None,
        on_settled: RequestCallback | None = None,
    ) -> None:
        self.request_id = request_id
        self.fen = fen
        self.depth = depth
        self.multipv = multipv
        self.best_move: str | None = None
        self._variants: dict[int, EngineVariant] = {}
        self._is_settled = False
        self._is_cancelled = False
        self._on_update = on_update
        self._on_settled = on_settled

    @property
    def variants(self) -> tuple[EngineVariant, ...]:
        """Current variants ordered by rank (principal variation first)."""
        return tuple(self._variants[rank] for rank in sorted(self._variants))

    @property
    def principal(self) -> EngineVariant | None:
        return self._variants.get(1)

    @property
    def is_settled(self) -> bool:
        return self._is_settled

    @property
    def is_cancelled(self) -> bool:
        return self._is_cancelled

    def variant(self, rank: int) -> EngineVariant | None:
        return self._variants.get(rank)

    def _update(self, variant: EngineVariant) -> None:
        self._variants[variant.rank] = variant
        if self._on_update is not None:
            self._on_update(self)

    def _is_complete(self) -> bool:
        for rank in range(1, self.multipv + 1):
            variant = self._variants.get(rank)
            if variant is None or variant.depth < self.depth:
                return False
        return True

    def _settle(self) -> None:
        self._is_settled = True
        if self._on_settled is not None:
            self._on_settled(self)

    def _cancel(self) -> None:
        self._is_cancelled = True
        self._variants.clear()


class EngineSession:
    """Drives one external UCI engine for position analysis.

    States: ``UNINITIALIZED → HANDSHAKE_PENDING → READY ⇄ ANALYZING``, and
    ``TERMINATED`` from anywhere. ``readyok`` is the only acknowledgement the
    session waits for; every other command is fire-and-forget.
    """

    __slots__ = (
        "__weakref__",
        "_transport",
        "_config",
        "_state",
        "_multipv",
        "_engine_name",
        "_active",
        "_latest",
        "_searches",
        "_next_request_id",
        "_lost_reason",
        "_on_ready",
        "_on_lost",
    )

    def __init__(
        self,
        transport: ITransport,
        config: EngineConfig | None = None,
        *,
        on_ready: ReadyCallback | None = None,
        on_lost: LostCallback | None = None,
    ) -> None:
        self._transport = transport
        self._config = config or EngineConfig()
        self._state = SessionState.UNINITIALIZED
        self._multipv = self._config.multipv
        self._engine_name: str | None = None
        self._active: AnalysisRequest | None = None
        self._latest: AnalysisRequest | None = None
        self._searches: deque[AnalysisRequest] = deque()
        self._next_request_id = 0
        self._lost_reason: str | None = None
        self._on_ready = on_ready
        self._on_lost = on_lost

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def multipv(self) -> int:
        return self._multipv

    @property
    def engine_name(self) -> str | None:
        return self._engine_name

    @property
    def active_request(self) -> AnalysisRequest | None:
        return self._active

    @property
    def variants(self) -> tuple[EngineVariant, ...]:
        """Variants of the latest request; cleared when it is cancelled."""
        if self._latest is None:
            return ()
        return self._latest.variants

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Open the transport and send the handshake; returns immediately."""
        self._ensure_alive()
        if self._state != SessionState.UNINITIALIZED:
            raise EngineStateError(f"start() not allowed in {self._state.name}")

        self._transport.on_line(self._on_line)
        self._transport.on_lost(self._on_transport_lost)
        self._multipv = self._config.multipv
        self._state = SessionState.HANDSHAKE_PENDING
        try:
            self._transport.open()
        except TransportLost as exc:
            self._mark_lost(str(exc))
            raise

        self._send(uci.UCI)
        self._send(uci.set_option(uci.MULTIPV_OPTION, self._multipv))
        for name, value in self._config.options.items():
            self._send(uci.set_option(name, value))
        self._send(uci.UCINEWGAME)
        self._send(uci.ISREADY)

    def wait_ready(self, timeout_ms: int = 5000) -> bool:
        """Pump the transport until ``readyok`` arrives or *timeout_ms* passes."""
        self._ensure_alive()
        deadline = time.monotonic() + timeout_ms / 1000
        while self._state == SessionState.HANDSHAKE_PENDING:
            remaining_ms = int((deadline - time.monotonic()) * 1000)
            if remaining_ms <= 0:
                break
            if not self._transport.wait_for_output(remaining_ms):
                break
        self._ensure_alive()
        return self._state in (SessionState.READY, SessionState.ANALYZING)

    def terminate(self) -> None:
        """Stop the engine and release the transport. Safe to call twice."""
        if self._state == SessionState.TERMINATED:
            return
        if self._active is not None:
            self._active._cancel()
            self._active = None
        if self._state != SessionState.UNINITIALIZED:
            try:
                self._transport.send(uci.QUIT)
            except TransportLost:
                _LOGGER.debug("Engine already gone while sending quit")
            self._transport.close()
        self._searches.clear()
        self._state = SessionState.TERMINATED

    # ── Analysis ─────────────────────────────────────────────────────────

    def analyze(
        self,
        fen: str,
        depth: int | None = None,
        multipv: int | None = None,
        *,
        on_update: RequestCallback | None = None,
        on_settled: RequestCallback | None = None,
    ) -> AnalysisRequest:
        """Start a bounded-depth search of *fen*; results stream into the request.

        Only one request may be outstanding; cancel the previous one first.
        Raises ``ValueError`` for an invalid FEN before anything is sent.
        """
        self._ensure_alive()
        if self._state != SessionState.READY:
            raise EngineStateError(f"analyze() not allowed in {self._state.name}")

        position = DEFAULT_RULES.position_from_fen(fen)
        search_depth = clamp_depth(self._config.depth if depth is None else depth)
        if multipv is not None and max(1, multipv) != self._multipv:
            self._multipv = max(1, multipv)
            self._send(uci.set_option(uci.MULTIPV_OPTION, self._multipv))

        self._next_request_id += 1
        request = AnalysisRequest(
            self._next_request_id,
            position,
            search_depth,
            self._multipv,
            on_update=on_update,
            on_settled=on_settled,
        )
        self._active = request
        self._latest = request
        self._searches.append(request)
        self._state = SessionState.ANALYZING
        self._send(uci.position_fen(position))
        self._send(uci.go_depth(search_depth))
        return request

    def cancel(self) -> None:
        """Send ``stop`` and return to READY without waiting for the engine."""
        self._ensure_alive()
        if self._state != SessionState.ANALYZING:
            raise EngineStateError(f"cancel() not allowed in {self._state.name}")
        self._send(uci.STOP)
        self._supersede_active()

    def reconfigure(self, multipv: int) -> None:
        """Change the number of reported lines; READY again after ``readyok``.

        A running request is stopped and superseded; analyze again to get
        results with the new line count.
        """
        self._ensure_alive()
        if self._state == SessionState.ANALYZING:
            self._send(uci.STOP)
            self._supersede_active()
        elif self._state != SessionState.READY:
            raise EngineStateError(f"reconfigure() not allowed in {self._state.name}")

        self._multipv = max(1, multipv)
        self._state = SessionState.HANDSHAKE_PENDING
        self._send(uci.set_option(uci.MULTIPV_OPTION, self._multipv))
        self._send(uci.ISREADY)

    # ── Transport callbacks ──────────────────────────────────────────────

    def _on_line(self, line: str) -> None:
        text = line.strip()
        if not text or self._state == SessionState.TERMINATED:
            return
        if text == uci.READYOK:
            self._on_readyok()
        elif text.startswith("info"):
            self._on_info(text)
        elif text.startswith("bestmove"):
            self._on_bestmove(text)
        elif text.startswith("id name "):
            self._engine_name = uci.parse_id_name(text)

    def _on_readyok(self) -> None:
        if self._state != SessionState.HANDSHAKE_PENDING:
            return
        self._state = SessionState.READY
        if self._on_ready is not None:
            self._on_ready()

    def _on_info(self, line: str) -> None:
        try:
            variant = uci.parse_info_line(line)
        except uci.UciParseError as exc:
            _LOGGER.warning("Skipping malformed engine line: %s", exc)
            return
        if variant is None or not self._searches:
            return

        owner = self._searches[0]
        if owner is not self._active or variant.rank > owner.multipv:
            return
        owner._update(variant)
        if owner._is_complete():
            self._settle(owner)

    def _on_bestmove(self, line: str) -> None:
        if not self._searches:
            _LOGGER.debug("Unexpected bestmove without a pending search: %s", line)
            return
        owner = self._searches.popleft()
        if owner.is_cancelled:
            return
        try:
            owner.best_move = uci.parse_bestmove(line)
        except uci.UciParseError as exc:
            _LOGGER.warning("Skipping malformed engine line: %s", exc)
        self._settle(owner)

    def _on_transport_lost(self, reason: str) -> None:
        self._mark_lost(reason)

    # ── Internal helpers ─────────────────────────────────────────────────

    def _settle(self, request: AnalysisRequest) -> None:
        if request.is_settled:
            return
        if self._active is request:
            self._active = None
            if self._state == SessionState.ANALYZING:
                self._state = SessionState.READY
        request._settle()

    def _supersede_active(self) -> None:
        if self._active is not None:
            self._active._cancel()
            self._active = None
        self._state = SessionState.READY

    def _send(self, line: str) -> None:
        _LOGGER.debug(">> %s", line)
        try:
            self._transport.send(line)
        except TransportLost as exc:
            self._mark_lost(str(exc))
            raise

    def _mark_lost(self, reason: str) -> None:
        if self._state == SessionState.TERMINATED:
            return
        _LOGGER.warning("Engine transport lost: %s", reason)
        if self._active is not None:
            self._active._cancel()
            self._active = None
        self._searches.clear()
        self._lost_reason = reason
        self._state = SessionState.TERMINATED
        self._transport.close()
        if self._on_lost is not None:
            self._on_lost(TransportLost(reason))

    def _ensure_alive(self) -> None:
        if self._state != SessionState.TERMINATED:
            return
        if self._lost_reason is not None:
            raise TransportLost(self._lost_reason)
        raise SessionTerminated("Engine session was terminated")

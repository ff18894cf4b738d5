"""Line transports connecting an :class:`EngineSession` to an engine process."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from PyQt6.QtCore import QObject, QProcess

from chessbook.errors import TransportLost

_LOGGER = logging.getLogger(__name__)

LineHandler = Callable[[str], None]
LostHandler = Callable[[str], None]


class ITransport(Protocol):
    """Asynchronous, line-oriented channel to an analysis process.

    Lines are delivered through the registered ``on_line`` handlers after
    the sending call has returned. Loss of the underlying process is
    reported once through ``on_lost`` handlers with a human-readable reason.
    """

    def open(self) -> None: ...

    def close(self) -> None: ...

    def send(self, line: str) -> None: ...

    def on_line(self, handler: LineHandler) -> None: ...

    def on_lost(self, handler: LostHandler) -> None: ...

    def wait_for_output(self, timeout_ms: int) -> bool: ...


class QProcessTransport:
    """Runs an engine executable with :class:`QProcess`.

    Output is delivered by the Qt event loop of the owning thread, or
    synchronously from :meth:`wait_for_output` for callers that block.
    """

    __slots__ = (
        "__weakref__",
        "_command",
        "_process",
        "_start_timeout_ms",
        "_buffer",
        "_line_handlers",
        "_lost_handlers",
        "_is_open",
        "_is_closing",
    )

    def __init__(
        self,
        command: Sequence[str],
        *,
        parent: QObject | None = None,
        start_timeout_ms: int = 3000,
    ) -> None:
        if not command:
            raise ValueError("Engine command must not be empty")
        self._command = list(command)
        self._process = QProcess(parent)
        self._start_timeout_ms = start_timeout_ms
        self._buffer = ""
        self._line_handlers: list[LineHandler] = []
        self._lost_handlers: list[LostHandler] = []
        self._is_open = False
        self._is_closing = False

        self._process.readyReadStandardOutput.connect(self._on_ready_read)
        self._process.readyReadStandardError.connect(self._on_ready_read_stderr)
        self._process.errorOccurred.connect(self._on_error)
        self._process.finished.connect(self._on_finished)

    @property
    def is_open(self) -> bool:
        return self._is_open

    def on_line(self, handler: LineHandler) -> None:
        self._line_handlers.append(handler)

    def on_lost(self, handler: LostHandler) -> None:
        self._lost_handlers.append(handler)

    def open(self) -> None:
        """Start the engine process; raises :class:`TransportLost` on failure."""
        if self._is_open:
            return
        program, *args = self._command
        self._is_closing = False
        self._process.start(program, args)
        if not self._process.waitForStarted(self._start_timeout_ms):
            raise TransportLost(
                f"Failed to start engine {program!r}: {self._process.errorString()}"
            )
        self._is_open = True
        _LOGGER.debug("Engine process started: %s", " ".join(self._command))

    def close(self) -> None:
        """Stop the engine process, killing it if it does not exit promptly."""
        self._is_closing = True
        self._is_open = False
        if self._process.state() == QProcess.ProcessState.NotRunning:
            return
        self._process.closeWriteChannel()
        if not self._process.waitForFinished(1000):
            self._process.kill()
            self._process.waitForFinished(1000)

    def send(self, line: str) -> None:
        if not self._is_open:
            raise TransportLost("Engine process is not running")
        self._process.write(f"{line}\n".encode())

    def wait_for_output(self, timeout_ms: int) -> bool:
        """Block up to *timeout_ms* for output; handlers run before returning."""
        if not self._is_open:
            return False
        return self._process.waitForReadyRead(max(0, timeout_ms))

    def _on_ready_read(self) -> None:
        data = bytes(self._process.readAllStandardOutput()).decode("utf-8", "replace")
        if not data:
            return
        self._buffer += data
        *lines, self._buffer = self._buffer.split("\n")
        for raw_line in lines:
            line = raw_line.rstrip("\r")
            if not line:
                continue
            for handler in list(self._line_handlers):
                handler(line)

    def _on_ready_read_stderr(self) -> None:
        data = bytes(self._process.readAllStandardError()).decode("utf-8", "replace")
        for line in data.splitlines():
            if line.strip():
                _LOGGER.debug("Engine stderr: %s", line)

    def _on_error(self, error: QProcess.ProcessError) -> None:
        if error == QProcess.ProcessError.FailedToStart:
            # Reported by open() through TransportLost.
            return
        self._notify_lost(f"Engine process error: {self._process.errorString()}")

    def _on_finished(self, exit_code: int, _exit_status: QProcess.ExitStatus) -> None:
        self._notify_lost(f"Engine process exited with code {exit_code}")

    def _notify_lost(self, reason: str) -> None:
        if self._is_closing or not self._is_open:
            return
        self._is_open = False
        _LOGGER.warning("%s", reason)
        for handler in list(self._lost_handlers):
            handler(reason)

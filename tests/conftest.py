"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator

import pytest

# Linux CI runners are often headless. Force an offscreen backend only there.
if (
    sys.platform.startswith("linux")
    and "QT_QPA_PLATFORM" not in os.environ
    and "DISPLAY" not in os.environ
    and "WAYLAND_DISPLAY" not in os.environ
):
    os.environ["QT_QPA_PLATFORM"] = "offscreen"


@pytest.fixture(scope="session")
def qapp() -> Iterator[object]:
    """Provide a singleton QCoreApplication for tests that need an event loop."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


class FakeTransport:
    """In-memory transport: records sent lines, lets tests feed engine output."""

    def __init__(self, *, fail_open: bool = False) -> None:
        self.sent: list[str] = []
        self.is_open = False
        self.closed = False
        self._fail_open = fail_open
        self._line_handlers: list[Callable[[str], None]] = []
        self._lost_handlers: list[Callable[[str], None]] = []
        self._queued: list[str] = []

    def open(self) -> None:
        from chessbook.errors import TransportLost

        if self._fail_open:
            raise TransportLost("engine binary not found")
        self.is_open = True

    def close(self) -> None:
        self.is_open = False
        self.closed = True

    def send(self, line: str) -> None:
        from chessbook.errors import TransportLost

        if not self.is_open:
            raise TransportLost("closed")
        self.sent.append(line)

    def on_line(self, handler: Callable[[str], None]) -> None:
        self._line_handlers.append(handler)

    def on_lost(self, handler: Callable[[str], None]) -> None:
        self._lost_handlers.append(handler)

    def wait_for_output(self, timeout_ms: int) -> bool:
        del timeout_ms
        if not self._queued:
            return False
        queued, self._queued = self._queued, []
        for line in queued:
            self.feed(line)
        return True

    def queue(self, *lines: str) -> None:
        """Hold lines back until the next ``wait_for_output``."""
        self._queued.extend(lines)

    def feed(self, *lines: str) -> None:
        for line in lines:
            for handler in list(self._line_handlers):
                handler(line)

    def lose(self, reason: str = "process crashed") -> None:
        self.is_open = False
        for handler in list(self._lost_handlers):
            handler(reason)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def failing_transport() -> FakeTransport:
    return FakeTransport(fail_open=True)

"""Command line entry point.

``chessbook normalize FILE`` replays an annotated PGN file and prints its
canonical form; ``chessbook analyze`` runs a UCI engine on a position and
prints the ranked lines in SAN.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from chessbook.core.rules import STARTING_FEN
from chessbook.engine.models import DEFAULT_DEPTH, EngineConfig
from chessbook.engine.session import AnalysisRequest, EngineSession
from chessbook.engine.translator import AnalysisResultTranslator
from chessbook.engine.transport import QProcessTransport
from chessbook.errors import ChessbookError, TransportLost
from chessbook.game.line import AnnotatedLine

_LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chessbook")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    normalize = commands.add_parser("normalize", help="rewrite annotated PGN canonically")
    normalize.add_argument("path", type=Path)
    normalize.add_argument(
        "--movetext-only",
        action="store_true",
        help="omit header lines and result token",
    )

    analyze = commands.add_parser("analyze", help="analyse a position with a UCI engine")
    analyze.add_argument("--engine", default="stockfish", help="engine command line")
    analyze.add_argument("--fen", default=STARTING_FEN)
    analyze.add_argument("--depth", type=int, default=None)
    analyze.add_argument("--multipv", type=int, default=1)
    analyze.add_argument("--timeout-ms", type=int, default=30_000)
    return parser


def _run_normalize(args: argparse.Namespace) -> int:
    line = AnnotatedLine.from_pgn(args.path.read_text(encoding="utf-8"))
    if args.movetext_only:
        print(line.to_movetext())
    else:
        print(line.to_pgn(), end="")
    return 0


def _print_request(request: AnalysisRequest) -> None:
    translator = AnalysisResultTranslator()
    for variant in request.variants:
        score = translator.format_score(variant, request.fen)
        text = translator.format_line(variant, request.fen)
        print(f"{variant.rank}. [{score}] depth {variant.depth}: {text}")


def _run_analyze(args: argparse.Namespace) -> int:
    from PyQt6.QtCore import QCoreApplication, QTimer

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    config = EngineConfig(
        command=args.engine.split(),
        depth=DEFAULT_DEPTH if args.depth is None else args.depth,
        multipv=args.multipv,
    )

    exit_code = 0

    def on_lost(error: TransportLost) -> None:
        nonlocal exit_code
        print(f"error: {error}", file=sys.stderr)
        exit_code = 2
        app.quit()

    session = EngineSession(QProcessTransport(config.command), config, on_lost=on_lost)
    session.start()
    if not session.wait_ready(args.timeout_ms):
        print("error: engine did not answer readyok", file=sys.stderr)
        session.terminate()
        return 2
    _LOGGER.info("Engine ready: %s", session.engine_name or config.command[0])

    request = session.analyze(args.fen, on_settled=lambda _request: app.quit())
    QTimer.singleShot(args.timeout_ms, app.quit)
    app.exec()

    if exit_code == 0:
        _print_request(request)
        if not request.is_settled:
            print("warning: analysis timed out before reaching full depth", file=sys.stderr)
    session.terminate()
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Parse *argv* and run the selected command; returns the exit code."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "normalize":
            return _run_normalize(args)
        return _run_analyze(args)
    except (ChessbookError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

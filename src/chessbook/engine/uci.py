"""UCI text protocol: command builders and engine output parsing."""

from __future__ import annotations

from chessbook.engine.models import MATE_SCORE_CP, EngineVariant

UCI = "uci"
UCIOK = "uciok"
UCINEWGAME = "ucinewgame"
ISREADY = "isready"
READYOK = "readyok"
STOP = "stop"
QUIT = "quit"
MULTIPV_OPTION = "MultiPV"

# Info keywords followed by exactly one value token.
_SINGLE_VALUE_KEYS = frozenset(
    {
        "depth",
        "seldepth",
        "time",
        "nodes",
        "multipv",
        "currmove",
        "currmovenumber",
        "hashfull",
        "nps",
        "tbhits",
        "sbhits",
        "cpuload",
    }
)


class UciParseError(ValueError):
    """An engine result line could not be interpreted."""


def set_option(name: str, value: object) -> str:
    return f"setoption name {name} value {value}"


def position_fen(fen: str) -> str:
    return f"position fen {fen}"


def go_depth(depth: int) -> str:
    return f"go depth {depth}"


def parse_id_name(line: str) -> str | None:
    """Engine name from an ``id name <name>`` line."""
    if not line.startswith("id name "):
        return None
    return line[len("id name ") :].strip() or None


def parse_bestmove(line: str) -> str | None:
    """Best move of a ``bestmove <move> [ponder <move>]`` line.

    Returns ``None`` when the engine had no move (``bestmove (none)``).
    Raises :class:`UciParseError` when *line* is not a bestmove line.
    """
    tokens = line.split()
    if not tokens or tokens[0] != "bestmove":
        raise UciParseError(f"Not a bestmove line: {line!r}")
    if len(tokens) < 2 or tokens[1] in ("(none)", "0000"):
        return None
    return tokens[1]


def _to_int(value: str, key: str, line: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise UciParseError(f"Bad {key} value {value!r} in {line!r}") from exc


def parse_info_line(line: str) -> EngineVariant | None:
    """Extract an :class:`EngineVariant` from an ``info`` line.

    Progress lines without a principal variation (``currmove``, ``nodes``
    updates, ``info string ...``) return ``None``. A line that carries a
    ``pv`` but lacks a usable score or depth raises :class:`UciParseError`.
    """
    tokens = line.split()
    if not tokens or tokens[0] != "info":
        return None

    values: dict[str, str] = {}
    score_kind: str | None = None
    score_value: str | None = None
    pv: list[str] | None = None

    idx = 1
    total = len(tokens)
    while idx < total:
        key = tokens[idx]
        if key == "string":
            return None
        if key == "pv":
            pv = tokens[idx + 1 :]
            break
        if key == "score":
            if idx + 2 >= total:
                raise UciParseError(f"Truncated score in {line!r}")
            score_kind, score_value = tokens[idx + 1], tokens[idx + 2]
            idx += 3
            while idx < total and tokens[idx] in ("lowerbound", "upperbound"):
                idx += 1
            continue
        if key in _SINGLE_VALUE_KEYS:
            if idx + 1 >= total:
                raise UciParseError(f"Missing value for {key} in {line!r}")
            values[key] = tokens[idx + 1]
            idx += 2
            continue
        idx += 1

    if pv is None:
        return None
    if not pv:
        raise UciParseError(f"Empty pv in {line!r}")
    if score_kind is None or score_value is None:
        raise UciParseError(f"Missing score in {line!r}")
    if "depth" not in values:
        raise UciParseError(f"Missing depth in {line!r}")

    rank = _to_int(values.get("multipv", "1"), "multipv", line)
    if rank < 1:
        raise UciParseError(f"Bad multipv rank {rank} in {line!r}")
    depth = _to_int(values["depth"], "depth", line)

    mate: int | None = None
    if score_kind == "cp":
        score_cp = _to_int(score_value, "score", line)
    elif score_kind == "mate":
        mate = _to_int(score_value, "score", line)
        if mate > 0:
            score_cp = MATE_SCORE_CP - mate
        else:
            score_cp = -MATE_SCORE_CP - mate
    else:
        raise UciParseError(f"Unknown score type {score_kind!r} in {line!r}")

    return EngineVariant(
        rank=rank,
        score_cp=score_cp,
        depth=depth,
        moves=tuple(pv),
        mate=mate,
    )

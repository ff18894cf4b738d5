"""Shared notation-layer data models."""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field

_CLOCK_RE = re.compile(r"\[%clk\s+[^\]]*\]|%clk\s+\d+:\d+:\d+(?:\.\d+)?")


def normalize_comment(text: str) -> str:
    """Collapse runs of whitespace the way the PGN tokenizer does."""
    return " ".join(text.split())


def strip_clock_annotations(comment: str) -> str:
    """Remove ``[%clk h:mm:ss]`` sub-tokens from a comment body."""
    return normalize_comment(_CLOCK_RE.sub(" ", comment))


class AnnotationStore(MutableMapping[int, str]):
    """Comments keyed by zero-based ply index.

    Only non-empty comments are stored: assigning blank text removes the
    entry, so ``ply in store`` always means "this ply has a comment".
    Whitespace is normalized and clock annotations are removed on
    assignment because the PGN body cannot preserve either.
    """

    __slots__ = ("_comments",)

    def __init__(self, comments: Mapping[int, str] | None = None) -> None:
        self._comments: dict[int, str] = {}
        if comments:
            for ply, text in comments.items():
                self[ply] = text

    def __getitem__(self, ply: int) -> str:
        return self._comments[ply]

    def __setitem__(self, ply: int, text: str) -> None:
        if not isinstance(ply, int) or isinstance(ply, bool):
            raise TypeError(f"Comment ply must be an int, got {type(ply).__name__}")
        if ply < 0:
            raise ValueError(f"Comment ply must be non-negative, got {ply}")
        clean = strip_clock_annotations(text)
        if clean:
            self._comments[ply] = clean
        else:
            self._comments.pop(ply, None)

    def __delitem__(self, ply: int) -> None:
        del self._comments[ply]

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._comments))

    def __len__(self) -> int:
        return len(self._comments)

    def __repr__(self) -> str:
        return f"AnnotationStore({dict(self.items())!r})"

    def append(self, ply: int, text: str) -> None:
        """Add *text* after any comment already attached to *ply*."""
        existing = self._comments.get(ply)
        self[ply] = f"{existing} {text}" if existing else text

    def trimmed(self, ply_count: int) -> AnnotationStore:
        """Return a copy without entries for plies ``>= ply_count``."""
        return AnnotationStore(
            {ply: text for ply, text in self._comments.items() if ply < ply_count}
        )

    def drop_from(self, ply: int) -> None:
        """Remove comments for *ply* and every later ply."""
        for key in [key for key in self._comments if key >= ply]:
            del self._comments[key]

    def copy(self) -> AnnotationStore:
        return AnnotationStore(self._comments)


@dataclass(slots=True)
class ParsedPgn:
    """Structured result of decoding one annotated PGN document."""

    moves: list[str]
    comments: AnnotationStore
    headers: tuple[str, ...] = ()
    result: str | None = None
    preamble: str = ""
    tags: dict[str, str] = field(default_factory=dict)

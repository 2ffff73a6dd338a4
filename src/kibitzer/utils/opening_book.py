"""Exact-match opening catalog keyed by FEN."""

from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

DEFAULT_ENTRIES: Dict[str, str] = {
    # Starting position
    STARTING_FEN: "e2e4",
    # 1.e4 -> open game
    "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1": "e7e5",
    # 1.e4 e5 -> Nf3
    "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 1": "g1f3",
    # 1.e4 e5 2.Nf3 -> Nc6
    "rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 1": "b8c6",
    # Ruy Lopez
    "r1bqkbnr/pppp1ppp/2n5/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 2 2": "f1b5",
    # Sicilian
    "rnbqkbnr/pp1ppppp/8/2p5/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 1": "g1f3",
}


class OpeningBook(Mapping[str, str]):
    """Static FEN -> UCI table.

    Keys are compared as raw strings: transpositions or FENs that differ only
    in their move counters are misses.
    """

    def __init__(self, entries: Optional[Mapping[str, str]] = None) -> None:
        self._entries: Dict[str, str] = dict(DEFAULT_ENTRIES if entries is None else entries)

    @classmethod
    def with_extras(cls, extra: Mapping[str, str]) -> "OpeningBook":
        merged = dict(DEFAULT_ENTRIES)
        merged.update(extra)
        return cls(merged)

    def lookup(self, fen: str) -> Optional[str]:
        return self._entries.get(fen)

    def __getitem__(self, fen: str) -> str:
        return self._entries[fen]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

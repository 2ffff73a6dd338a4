"""In-memory stand-ins for the clock, the Gemini API and the UCI engine."""

import asyncio
import json
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import chess
import chess.engine
import httpx

from kibitzer.engine.base_engine import ReasoningReply


class FakeClock:
    """Manually advanced clock; ``sleep`` jumps time forward instantly."""

    def __init__(self, start: float = 100.0):
        self.current = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += max(seconds, 0.0)

    def advance(self, seconds: float) -> None:
        self.current += seconds


def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class GeminiScript:
    """MockTransport handler replaying (status, text) pairs; the last one repeats."""

    def __init__(self, replies, clock: Optional[FakeClock] = None):
        self.replies = list(replies)
        self.clock = clock
        self.keys: List[str] = []
        self.prompts: List[str] = []
        self.dispatched_at: List[float] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.keys.append(request.headers["x-goog-api-key"])
        payload = json.loads(request.content)
        self.prompts.append(payload["contents"][0]["parts"][0]["text"])
        if self.clock is not None:
            self.dispatched_at.append(self.clock.now())

        status, text = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if status != 200:
            return httpx.Response(status, json={"error": {"code": status, "message": "busy"}})
        return httpx.Response(200, json=gemini_body(text))

    @property
    def calls(self) -> int:
        return len(self.keys)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class FakeUciEngine:
    """Stand-in for python-chess's UCI protocol object; answers ``play`` from a FEN map.

    Searches for FENs listed in *stalled* never finish; cancelling them is
    recorded in ``cancelled``.
    """

    def __init__(self, moves: Optional[Dict[str, Optional[str]]] = None, default_move="e7e5", stalled=(), error=None):
        self.moves = dict(moves or {})
        self.default_move = default_move
        self.stalled = set(stalled)
        self.error = error
        self.searched: List[str] = []
        self.limits: List[chess.engine.Limit] = []
        self.cancelled: List[str] = []
        self.active = 0
        self.max_active = 0
        self.quit_called = False

    async def play(self, board: chess.Board, limit: chess.engine.Limit) -> chess.engine.PlayResult:
        fen = board.fen()
        self.searched.append(fen)
        self.limits.append(limit)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            if fen in self.stalled:
                try:
                    await asyncio.Event().wait()
                except asyncio.CancelledError:
                    self.cancelled.append(fen)
                    raise
            if self.error is not None:
                raise self.error
            move = self.moves.get(fen, self.default_move)
            return chess.engine.PlayResult(chess.Move.from_uci(move) if move else None, None)
        finally:
            self.active -= 1

    async def quit(self) -> None:
        self.quit_called = True


def patch_popen(engine: FakeUciEngine):
    """Patch ``chess.engine.popen_uci`` to hand out *engine*."""
    return patch("chess.engine.popen_uci", new=AsyncMock(return_value=(MagicMock(), engine)))


class StubReasoning:
    """Scripted reasoning client; entries are replies or exceptions."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls: List[str] = []

    async def request(self, fen, legal_moves):
        self.calls.append(fen)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, dict):
            return ReasoningReply(**item)
        return item


class StubEngine:
    """Local engine stand-in returning mapped moves."""

    def __init__(self, moves: Optional[Dict[str, str]] = None, default_move: str = "e7e5", error=None):
        self.depth = 10
        self.moves = dict(moves or {})
        self.default_move = default_move
        self.error = error
        self.calls: List[str] = []
        self.closed = False
        self.gate: Optional[asyncio.Event] = None

    async def search(self, fen: str) -> str:
        self.calls.append(fen)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.moves.get(fen, self.default_move)

    async def aclose(self) -> None:
        self.closed = True

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from typing import Optional

import chess
import chess.engine

from ..exceptions import EngineChannelError

logger = logging.getLogger(__name__)


class StockfishBridge:
    """Asynchronous single-slot pipeline to a UCI engine process.

    The engine is driven through python-chess's asyncio UCI protocol, which
    performs the handshake and matches each ``bestmove`` to the command that
    asked for it.  Searches are serialised by a lock, so concurrent callers
    are answered in FIFO order and never share a pending search.
    """

    def __init__(
        self,
        path: str = "stockfish",
        *,
        depth: int = 10,
        search_timeout: Optional[float] = None,
    ) -> None:
        self.path = path
        self.depth = depth
        self.search_timeout = search_timeout
        self._transport: Optional[asyncio.SubprocessTransport] = None
        self._engine: Optional[chess.engine.Protocol] = None
        self._lock = asyncio.Lock()
        self._closed = False

    @classmethod
    def from_config(cls, cfg, **kwargs) -> "StockfishBridge":
        sf = cfg.stockfish
        return cls(sf.path, depth=sf.depth, search_timeout=sf.search_timeout, **kwargs)

    @property
    def started(self) -> bool:
        return self._engine is not None

    async def __aenter__(self) -> "StockfishBridge":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _resolve_path(self) -> str:
        if os.path.isabs(self.path) or os.sep in self.path:
            return self.path
        return shutil.which(self.path) or self.path

    async def start(self) -> None:
        """Spawn the engine and complete the UCI handshake."""
        if self._closed:
            raise EngineChannelError("Engine bridge has been closed")
        if self._engine is not None:
            return
        path = self._resolve_path()
        try:
            self._transport, self._engine = await chess.engine.popen_uci(path)
        except (FileNotFoundError, PermissionError) as e:
            raise EngineChannelError(
                f"Stockfish engine not found at '{self.path}'. Please install Stockfish or update the path in your config file."
            ) from e
        except chess.engine.EngineError as e:
            raise EngineChannelError(f"Engine failed during UCI handshake: {e}") from e
        logger.info("UCI engine ready (depth %d)", self.depth)

    async def search(self, fen: str) -> str:
        """Return the engine's best move for *fen* in UCI notation."""
        board = chess.Board(fen)
        limit = chess.engine.Limit(depth=self.depth)
        async with self._lock:
            await self.start()
            try:
                # Cancelling play() makes python-chess send "stop" and swallow the late bestmove
                result = await asyncio.wait_for(self._engine.play(board, limit), timeout=self.search_timeout)
            except asyncio.TimeoutError as e:
                raise EngineChannelError(f"Engine did not answer within {self.search_timeout}s") from e
            except chess.engine.EngineTerminatedError as e:
                raise EngineChannelError(f"Engine process has exited: {e}") from e
            except chess.engine.EngineError as e:
                raise EngineChannelError(f"Engine search failed: {e}") from e

        if result.move is None:
            raise EngineChannelError(f"Engine reported no move for {fen}")
        return result.move.uci()

    async def aclose(self) -> None:
        """Gracefully terminate the underlying UCI process."""
        if self._closed:
            return
        self._closed = True
        engine, self._engine = self._engine, None
        if engine is not None:
            try:
                await engine.quit()
            except chess.engine.EngineError as e:
                logger.debug("Engine already gone on quit: %s", e)
        if self._transport is not None:
            self._transport.close()
            self._transport = None

"""Move selection cascade: opening book, remote reasoning, local engine.

One :class:`Orchestrator` is created per game session.  It owns the session's
circuit breaker, so a failure of the remote stage in one game never disables
it in another.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from ..engine.base_engine import ReasoningEngine, SearchEngine
from ..engine.gemini_engine import GeminiEngine
from ..engine.retry import CircuitBreaker
from ..engine.stockfish_engine import StockfishBridge
from ..exceptions import (
    IllegalMoveError,
    MalformedResponseError,
    OrchestratorBusyError,
    ReasoningError,
    TurnTimeoutError,
)
from ..utils.opening_book import OpeningBook
from .commentary import FALLBACK_SUFFIX, OPENING_REMARK, CommentaryGenerator

logger = logging.getLogger(__name__)

Listener = Callable[[str, object], None]


class MoveSource(str, Enum):
    book = "book"
    remote = "remote"
    engine = "engine"


class OrchestratorStatus(str, Enum):
    idle = "idle"
    thinking = "thinking"


@dataclass(frozen=True)
class MoveResult:
    move: str
    commentary: str
    source: MoveSource
    rationale: str = ""

    def to_dict(self) -> Dict[str, str]:
        data = asdict(self)
        data["source"] = self.source.value
        return data


class Orchestrator:
    """Pick one move per turn from the first source that can answer.

    Stages, in order:

    1. exact-FEN opening book (no legality check, the key fixes the position)
    2. remote reasoning, skipped for good once the breaker has tripped
    3. local engine, the terminal fallback whose failures reach the caller
    """

    def __init__(
        self,
        engine: SearchEngine,
        reasoning: Optional[ReasoningEngine] = None,
        *,
        book: Optional[OpeningBook] = None,
        commentary: Optional[CommentaryGenerator] = None,
        breaker: Optional[CircuitBreaker] = None,
        book_delay: float = 0.0,
        turn_timeout: Optional[float] = None,
        trip_on_malformed: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.engine = engine
        self.reasoning = reasoning
        self.book = book if book is not None else OpeningBook()
        self.commentary = commentary or CommentaryGenerator()
        self.breaker = breaker or CircuitBreaker()
        self.book_delay = book_delay
        self.turn_timeout = turn_timeout
        self.trip_on_malformed = trip_on_malformed
        self._sleep = sleep

        self._status = OrchestratorStatus.idle
        self._listeners: List[Listener] = []
        self.downgrade_notice: Optional[str] = None

    @classmethod
    def from_config(cls, cfg, *, credentials=None, transport=None, clock=None, rng=None) -> "Orchestrator":
        """Wire every stage from a validated :class:`ConfigModel`."""
        breaker = CircuitBreaker()
        reasoning = GeminiEngine.from_config(
            cfg,
            credentials=credentials,
            breaker=breaker,
            clock=clock,
            transport=transport,
        )
        return cls(
            StockfishBridge.from_config(cfg),
            reasoning,
            book=OpeningBook.with_extras(cfg.book.extra_entries),
            commentary=CommentaryGenerator(rng=rng or random.Random()),
            breaker=breaker,
            book_delay=cfg.orchestrator.book_delay,
            turn_timeout=cfg.orchestrator.turn_timeout,
            trip_on_malformed=cfg.orchestrator.trip_on_malformed,
        )

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------
    @property
    def status(self) -> OrchestratorStatus:
        return self._status

    @property
    def remote_disabled(self) -> bool:
        return self.reasoning is None or self.breaker.tripped

    def add_listener(self, listener: Listener) -> None:
        """Register ``listener(event, value)`` for ``status`` and ``remote_disabled``."""
        self._listeners.append(listener)

    def _notify(self, event: str, value: object) -> None:
        for listener in list(self._listeners):
            listener(event, value)

    def _set_status(self, status: OrchestratorStatus) -> None:
        if status is self._status:
            return
        self._status = status
        self._notify("status", status)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def pick_move(self, fen: str, legal_moves: Sequence[str]) -> MoveResult:
        """Return exactly one move for *fen*.

        Raises:
            OrchestratorBusyError: a previous call is still running.
            EngineChannelError: the local engine failed; there is no further fallback.
            TurnTimeoutError: stages 2-3 exceeded ``turn_timeout``.
        """
        if self._status is OrchestratorStatus.thinking:
            raise OrchestratorBusyError("pick_move is already running for this session")

        self._set_status(OrchestratorStatus.thinking)
        try:
            book_move = self.book.lookup(fen)
            if book_move is not None:
                if self.book_delay > 0:
                    await self._sleep(self.book_delay)
                return MoveResult(book_move, OPENING_REMARK, MoveSource.book, "Opening book move")

            cascade = self._cascade(fen, list(legal_moves))
            if self.turn_timeout is None:
                return await cascade
            try:
                return await asyncio.wait_for(cascade, timeout=self.turn_timeout)
            except asyncio.TimeoutError as e:
                raise TurnTimeoutError(f"No move within {self.turn_timeout}s for {fen}") from e
        finally:
            self._set_status(OrchestratorStatus.idle)

    async def _cascade(self, fen: str, legal_moves: List[str]) -> MoveResult:
        result = await self._try_remote(fen, legal_moves)
        if result is not None:
            return result

        move = await self.engine.search(fen)
        commentary = self.commentary.describe(fen, move)
        if self.breaker.tripped:
            commentary += FALLBACK_SUFFIX
        depth = getattr(self.engine, "depth", None)
        rationale = f"Engine calculation (depth {depth})" if depth else "Engine calculation"
        return MoveResult(move, commentary, MoveSource.engine, rationale)

    async def _try_remote(self, fen: str, legal_moves: List[str]) -> Optional[MoveResult]:
        if self.remote_disabled:
            return None

        # normalised -> caller's spelling, so the returned move is their exact string
        legal = {m.strip().lower(): m for m in legal_moves}
        try:
            reply = await self.reasoning.request(fen, legal_moves)
            candidate = (reply.move or "").strip().lower()
            if candidate not in legal:
                raise IllegalMoveError(reply.move)
        except MalformedResponseError as e:
            if not self.trip_on_malformed:
                logger.warning("Malformed remote reply, using local engine this turn: %s", e)
                return None
            self._trip(e)
            return None
        except ReasoningError as e:
            self._trip(e)
            return None

        return MoveResult(
            legal[candidate],
            reply.taunt or reply.thought or "...",
            MoveSource.remote,
            reply.thought or "Analyzing...",
        )

    def _trip(self, error: ReasoningError) -> None:
        logger.warning("Remote reasoning failed, switching to local engine: %s", error)
        if self.breaker.trip(f"{type(error).__name__}: {error}"):
            self.downgrade_notice = self.commentary.downgrade_notice()
            self._notify("remote_disabled", True)

    async def aclose(self) -> None:
        await self.engine.aclose()
        if self.reasoning is not None and hasattr(self.reasoning, "aclose"):
            await self.reasoning.aclose()

    async def __aenter__(self) -> "Orchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

from typing import Optional, Protocol, Sequence

from pydantic import BaseModel


class ReasoningReply(BaseModel):
    """Structured answer from the remote reasoning service."""

    move: Optional[str] = None
    thought: Optional[str] = None
    taunt: Optional[str] = None


class ReasoningEngine(Protocol):
    """Remote move source; the orchestrator validates the returned move."""

    async def request(self, fen: str, legal_moves: Sequence[str]) -> ReasoningReply:  # noqa: D401
        """Return the service's move suggestion for *fen*.

        Raise a :class:`~kibitzer.exceptions.ReasoningError` subclass on any
        failure; the caller turns it into a breaker trip.
        """
        ...


class SearchEngine(Protocol):
    """Local move source; answers are trusted without a legality check."""

    depth: int

    async def search(self, fen: str) -> str:  # noqa: D401
        """Return the engine's best move for *fen* in UCI notation."""
        ...

    async def aclose(self) -> None:
        ...

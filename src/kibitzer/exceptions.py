"""Error taxonomy shared by the move sources and the orchestrator.

Reasoning failures all derive from :class:`ReasoningError` so the orchestrator
can absorb them with a single ``except`` clause and trip its breaker.  Engine,
timeout and busy errors are the only ones allowed to reach the caller.
"""

from __future__ import annotations

from typing import Optional


class KibitzerError(RuntimeError):
    """Base class for every error raised by this package."""


# ---------------------------------------------------------------------------
# Remote reasoning
# ---------------------------------------------------------------------------

class ReasoningError(KibitzerError):
    """The remote reasoning stage could not produce a usable reply."""


class CircuitOpenError(ReasoningError):
    """Remote reasoning is disabled for the rest of the session."""


class NoCredentialsError(ReasoningError):
    """The credential pool is empty; no request can be made."""


class TransientRemoteError(ReasoningError):
    """Rate-limited (429) or overloaded (503) reply from the remote service."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteExhaustedError(ReasoningError):
    """Transient failures persisted past rotation and the backoff ceiling."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class RemoteRequestError(ReasoningError):
    """Non-transient HTTP or transport failure."""


class MalformedResponseError(ReasoningError):
    """Reply was empty or could not be parsed into a move object."""


class IllegalMoveError(ReasoningError):
    """A source answered with a move missing from the legal set."""

    def __init__(self, move: Optional[str]) -> None:
        super().__init__(f"Move {move!r} is not in the legal move set")
        self.move = move


# ---------------------------------------------------------------------------
# Local engine / orchestration
# ---------------------------------------------------------------------------

class EngineChannelError(KibitzerError):
    """The local engine process is unreachable or never answered."""


class TurnTimeoutError(KibitzerError):
    """A single ``pick_move`` call exceeded its per-turn budget."""


class OrchestratorBusyError(KibitzerError):
    """``pick_move`` was called while a previous call was still running."""


__all__ = [
    "KibitzerError",
    "ReasoningError",
    "CircuitOpenError",
    "NoCredentialsError",
    "TransientRemoteError",
    "RemoteExhaustedError",
    "RemoteRequestError",
    "MalformedResponseError",
    "IllegalMoveError",
    "EngineChannelError",
    "TurnTimeoutError",
    "OrchestratorBusyError",
]

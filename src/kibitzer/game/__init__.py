from .commentary import CommentaryGenerator
from .orchestrator import MoveResult, MoveSource, Orchestrator, OrchestratorStatus

__all__ = [
    "CommentaryGenerator",
    "MoveResult",
    "MoveSource",
    "Orchestrator",
    "OrchestratorStatus",
]

"""Short remarks derived from replaying a move on a scratch board."""

from __future__ import annotations

import random
from typing import Dict, List, Optional, Sequence

from ..utils.chess_utils import apply_move

INVALID_MOVE_REMARK = "That move doesn't even work on this board!"
CHECKMATE_REMARK = "Checkmate! Game over!"
OPENING_REMARK = "Textbook opening, straight from the book!"
FALLBACK_SUFFIX = " (fallback mode)"

PHRASES: Dict[str, List[str]] = {
    "check": [
        "Check! Where are you running to?",
        "Your king is in trouble, better cover him!",
        "No escape from this one, check!",
        "Mind your king's head!",
    ],
    "capture": [
        "Yum, I'll take that piece.",
        "Thanks for the gift!",
        "That trade works out nicely for me.",
        "Costly slip. I'll be keeping this one.",
    ],
    "quiet": [
        "How long did you spend on your last move?",
        "Let's see how you handle this.",
        "Running out of ideas already?",
        "Not bad, but not quite enough.",
        "Interesting try, but I saw it coming.",
        "Careful now, there might be a trap here.",
    ],
    "switch_mode": [
        "The network is lagging, switching to God Mode (local engine)!",
        "My remote brain went on holiday; now you face the final boss.",
        "Out of API quota, so the engine will finish this game for me.",
    ],
}


class CommentaryGenerator:
    """Classify a move as mate, check, capture or quiet and pick a phrase."""

    def __init__(
        self,
        phrases: Optional[Dict[str, Sequence[str]]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.phrases = {key: list(values) for key, values in (phrases or PHRASES).items()}
        self.rng = rng or random.Random()

    def pick(self, category: str) -> str:
        return self.rng.choice(self.phrases[category])

    def describe(self, fen: str, move: str) -> str:
        """Remark for *move* played from *fen*; the caller's position is untouched."""
        applied = apply_move(fen, move)
        if applied is None:
            return INVALID_MOVE_REMARK
        if applied.checkmate:
            return CHECKMATE_REMARK
        if applied.check:
            return self.pick("check")
        if applied.captured:
            return self.pick("capture")
        return self.pick("quiet")

    def downgrade_notice(self) -> str:
        return self.pick("switch_mode")

"""
Rules-engine helpers
Thin wrappers around python-chess working on FEN strings and UCI moves, so the
orchestrator never has to hold a live board.
"""

from dataclasses import dataclass
from typing import List, Optional

import chess


@dataclass(frozen=True)
class AppliedMove:
    """Outcome of replaying one move on a scratch board."""

    fen: str
    move: chess.Move
    captured: bool
    check: bool
    checkmate: bool


def parse_uci(board: chess.Board, uci: str) -> Optional[chess.Move]:
    """Return the legal move matching *uci* on *board*, or ``None``.

    A bare four-character pawn move onto the last rank is read as a queen
    promotion.
    """
    try:
        move = chess.Move.from_uci(uci.strip().lower())
    except ValueError:
        return None

    if move in board.legal_moves:
        return move

    if move.promotion is None:
        promoted = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
        if promoted in board.legal_moves:
            return promoted
    return None


def apply_move(fen: str, uci: str) -> Optional[AppliedMove]:
    """Replay *uci* on a copy of *fen*; ``None`` when the move is illegal."""
    try:
        board = chess.Board(fen)
    except ValueError:
        return None

    move = parse_uci(board, uci)
    if move is None:
        return None

    captured = board.is_capture(move)
    board.push(move)
    return AppliedMove(
        fen=board.fen(),
        move=move,
        captured=captured,
        check=board.is_check(),
        checkmate=board.is_checkmate(),
    )


def legal_moves(fen: str) -> List[str]:
    """UCI strings for every legal move in *fen*."""
    return [move.uci() for move in chess.Board(fen).legal_moves]


def is_check(fen: str) -> bool:
    return chess.Board(fen).is_check()


def is_checkmate(fen: str) -> bool:
    return chess.Board(fen).is_checkmate()


def is_game_over(fen: str) -> bool:
    return chess.Board(fen).is_game_over(claim_draw=True)


def side_to_move(fen: str) -> str:
    """``"white"`` or ``"black"``, read from the FEN's active-colour field."""
    fields = fen.split()
    return "black" if len(fields) > 1 and fields[1] == "b" else "white"
